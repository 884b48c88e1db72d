from rest_framework import serializers
from .models import Job


class JobSerializer(serializers.ModelSerializer):
    class Meta:
        model = Job
        fields = [
            "id",
            "stage",
            "state",
            "progress",
            "attempt",
            "logs",
            "payload",
            "result",
            "error",
            "visible_at",
            "created_at",
            "updated_at",
        ]


class JobSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Job
        fields = ["id", "stage", "state", "progress", "attempt", "visible_at", "updated_at"]


class TriggerRequestSerializer(serializers.Serializer):
    # unknown profiles fall back to the default one, so no choices here
    profile = serializers.CharField(required=False, allow_blank=True)
    styles = serializers.ListField(
        child=serializers.CharField(max_length=64),
        required=False,
        allow_empty=True,
    )

    def validate_styles(self, value):
        """Either nothing (sampled later) or exactly two distinct styles."""
        if not value:
            return value
        value = [s.strip() for s in value]
        if len(value) != 2 or value[0] == value[1] or not all(value):
            raise serializers.ValidationError("Provide exactly two distinct, non-empty styles.")
        return value


class TriggerResponseSerializer(serializers.Serializer):
    job_id = serializers.CharField()
    profile = serializers.CharField()
    styles = serializers.ListField(child=serializers.CharField())
