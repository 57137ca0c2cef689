from django.urls import path

from .api import DownloadUrlView, PresignUploadView

app_name = "uploads"

urlpatterns = [
    path("api/uploads/presign/", PresignUploadView.as_view(), name="presign"),
    path("api/uploads/download-url/", DownloadUrlView.as_view(), name="download-url"),
]
