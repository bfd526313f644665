# azure_blob.py
import os
import uuid

from azure.storage.blob import BlobServiceClient

account = os.getenv("AZURE_STORAGE_ACCOUNT")
key = os.getenv("AZURE_STORAGE_KEY")
RECEIPTS_CONTAINER = os.getenv("RECEIPTS_CONTAINER", "receipts")

_blob_service = None


def get_blob_service() -> BlobServiceClient:
     """Storage client, built on first use so the app starts without credentials."""
     global _blob_service
     if _blob_service is None:
          _blob_service = BlobServiceClient.from_connection_string(
               f"DefaultEndpointsProtocol=https;"
               f"AccountName={account};"
               f"AccountKey={key};"
               f"EndpointSuffix=core.windows.net"
          )
     return _blob_service


def upload_to_blob(file, container: str, owner_id: int) -> str:
     ext = os.path.splitext(file.filename or "")[1]
     filename = f"{owner_id}/{uuid.uuid4()}{ext}"
     blob_client = get_blob_service().get_blob_client(container=container, blob=filename)
     blob_client.upload_blob(file.file, overwrite=True)
     return f"https://{account}.blob.core.windows.net/{container}/{filename}"
