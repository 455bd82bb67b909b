from rest_framework import serializers

from apps.pipeline.models import Stage


class StageTransitionSerializer(serializers.Serializer):
    lead_id = serializers.CharField(max_length=64)
    to_stage = serializers.PrimaryKeyRelatedField(queryset=Stage.objects.all())
    from_stage = serializers.PrimaryKeyRelatedField(
        queryset=Stage.objects.all(), required=False, allow_null=True
    )
    model_name = serializers.CharField(required=False, allow_blank=True, default="")
    model_photo = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    responsible = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    room = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    custom_data = serializers.DictField(required=False, default=dict)
    by_user = serializers.CharField(required=False, allow_blank=True, default="")


class FinalSyncSerializer(serializers.Serializer):
    status_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
