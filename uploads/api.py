import logging

from django.core.exceptions import PermissionDenied
from rest_framework import permissions, serializers, status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import APIView

from coursework.services import can_read_key

from .storage import StorageNotConfigured, get_object_storage

logger = logging.getLogger(__name__)


class StorageUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "File uploads are temporarily unavailable."
    default_code = "storage_unavailable"


def _storage():
    try:
        return get_object_storage()
    except StorageNotConfigured as exc:
        logger.error("Object storage is not configured: %s", exc)
        raise StorageUnavailable() from exc


class PresignUploadView(APIView):
    """Issue a short-lived URL the browser can PUT one file to."""

    permission_classes = [permissions.IsAuthenticated]

    class InputSerializer(serializers.Serializer):
        filename = serializers.CharField(max_length=255)
        content_type = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def post(self, request, *args, **kwargs):
        serializer = self.InputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        storage = _storage()
        try:
            presigned = storage.presign_upload(
                serializer.validated_data["filename"],
                owner_id=request.user.pk,
                content_type=serializer.validated_data.get("content_type") or None,
            )
        except StorageNotConfigured as exc:
            logger.error("Cannot presign upload: %s", exc)
            raise StorageUnavailable() from exc
        return Response(presigned.as_dict(), status=status.HTTP_201_CREATED)


class DownloadUrlView(APIView):
    """Return a readable URL for a stored object the user may see."""

    permission_classes = [permissions.IsAuthenticated]

    class InputSerializer(serializers.Serializer):
        key = serializers.CharField(max_length=512)

    def get(self, request, *args, **kwargs):
        serializer = self.InputSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        key = serializer.validated_data["key"]
        storage = _storage()

        if not (storage.owns(key, request.user.pk) or can_read_key(request.user, key)):
            raise PermissionDenied("You cannot access this file.")

        try:
            url = storage.url_for(key)
        except StorageNotConfigured as exc:
            raise StorageUnavailable() from exc
        expires_in = None if storage.public_url(key) else storage.config.download_expires
        return Response({"key": key, "signedUrl": url, "expiresInSeconds": expires_in})
