# app/workspace/projects/serializers.py
from rest_framework import serializers


class ProjectWriteSerializer(serializers.Serializer):
    """
    Documented shape of project create/update bodies.

    Besides ``name`` and ``status`` the body may carry any parameter key;
    keys the caller may not edit are dropped by the projection service.
    """

    name = serializers.CharField(required=False)
    status = serializers.CharField(required=False)


class ConfidentialNotesSerializer(serializers.Serializer):
    confidentialNotes = serializers.CharField(required=False, allow_blank=True, default="", trim_whitespace=False)
