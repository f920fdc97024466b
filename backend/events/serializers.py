# events/serializers.py
"""
Serializers for audit events.
"""

from rest_framework import serializers

from events.models import BusinessEvent


class BusinessEventSerializer(serializers.ModelSerializer):
    """Audit event as shown in an aggregate's history."""

    caused_by_user_email = serializers.CharField(
        source='caused_by_user.email',
        read_only=True,
        default=None,
    )

    class Meta:
        model = BusinessEvent
        fields = [
            'id',
            'event_type',
            'aggregate_type',
            'aggregate_id',
            'sequence',
            'occurred_at',
            'caused_by_user_email',
            'data',
        ]
        read_only_fields = fields
