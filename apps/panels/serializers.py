from rest_framework import serializers

from apps.panels.models import Call


class CallSerializer(serializers.ModelSerializer):
    panel_id = serializers.CharField(read_only=True, allow_null=True)

    class Meta:
        model = Call
        fields = [
            "id",
            "panel_id",
            "lead_id",
            "model_name",
            "model_photo",
            "room",
            "responsible",
            "source",
            "custom_data",
            "status",
            "called_at",
            "created_at",
        ]
        read_only_fields = fields
