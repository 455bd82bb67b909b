from rest_framework import serializers


class LeadCreateSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(required=False, allow_blank=True, default="")
    additional_phones = serializers.ListField(
        child=serializers.CharField(allow_blank=True), required=False, default=list
    )
    assigned_by_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    custom_values = serializers.DictField(required=False, default=dict)
