from rest_framework import serializers

from apps.checkins.models import CheckIn


class CheckInSerializer(serializers.ModelSerializer):
    class Meta:
        model = CheckIn
        fields = [
            "id",
            "lead_id",
            "lead_name",
            "model_name",
            "model_photo",
            "responsible",
            "checked_in_at",
            "is_active",
        ]
        read_only_fields = fields


class CheckInRequestSerializer(serializers.Serializer):
    lead_id = serializers.CharField(max_length=64)
    model_name = serializers.CharField(max_length=255)
    lead_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    model_photo = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    responsible = serializers.CharField(
        max_length=255, required=False, allow_blank=True, allow_null=True, default=None
    )


class ResolveRequestSerializer(serializers.Serializer):
    ACTIONS = ("recheck", "new_model")

    lead_id = serializers.CharField(max_length=64)
    action = serializers.ChoiceField(choices=ACTIONS)
    model_name = serializers.CharField(
        max_length=255, required=False, allow_blank=True, trim_whitespace=False, default=""
    )
