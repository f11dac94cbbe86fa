'''
     Serializes Event and exposes its attachments as absolute URLs.
     NOTE: `poster` / `posters` are write-only uploads; responses carry
     `poster_url` (single, or null) and `poster_urls` (list, upload order).
     URLs come from an AttachmentResolver passed in the serializer context
     as `attachment_resolver`, or one built from settings.
'''

from django.db import transaction
from rest_framework import serializers

from .models import Event
from .resolvers import AttachmentResolver


class EventSerializer(serializers.ModelSerializer):
    # Write-only uploads, names capped at the Blob.filename column; reads expose URLs instead.
    poster = serializers.FileField(write_only=True, required=False, max_length=255)
    posters = serializers.ListField(
        child=serializers.FileField(max_length=255), write_only=True, required=False,
    )
    poster_url = serializers.SerializerMethodField()
    poster_urls = serializers.SerializerMethodField()

    class Meta:
        model = Event
        fields = [
            'id', 'title', 'description', 'starts_at', 'created_at',
            'poster', 'posters', 'poster_url', 'poster_urls',
        ]
        read_only_fields = ['id', 'created_at']

    @property
    def resolver(self):
        resolver = self.context.get('attachment_resolver')
        if resolver is None:
            resolver = AttachmentResolver.from_settings()
        return resolver

    def get_poster_url(self, obj):
        return self.resolver.resolve_one(obj, 'poster')

    def get_poster_urls(self, obj):
        return self.resolver.resolve_many(obj, 'posters')

    def create(self, validated_data):
        poster = validated_data.pop('poster', None)
        posters = validated_data.pop('posters', [])
        # Event row and its uploads are persisted together or not at all.
        with transaction.atomic():
            event = super().create(validated_data)
            self._attach(event, poster, posters)
        return event

    def update(self, instance, validated_data):
        """A new `poster` replaces the old one; `posters` are appended."""
        poster = validated_data.pop('poster', None)
        posters = validated_data.pop('posters', [])
        with transaction.atomic():
            event = super().update(instance, validated_data)
            self._attach(event, poster, posters)
        return event

    def _attach(self, event, poster, posters):
        if poster is not None:
            event.poster.attach(poster)
        if posters:
            event.posters.attach(*posters)
