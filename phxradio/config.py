"""Configuration: env, bucket layout, signed URL lifetimes, admin credentials."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of phxradio package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so AWS_* and S3_BUCKET_NAME are set
load_dotenv(BASE_DIR / ".env")

DATA_DIR = Path(os.getenv("PHXRADIO_DATA_DIR", str(BASE_DIR / "data")))

# API
API_HOST = os.getenv("PHXRADIO_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("PHXRADIO_API_PORT", "8000"))

# Object store (credentials are picked up by boto3 from AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY)
AWS_REGION = os.getenv("AWS_REGION", "us-east-2")
S3_BUCKET_NAME = os.getenv("S3_BUCKET_NAME", "")
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL", "")  # R2 / MinIO; empty for AWS
# Base for publicUrl in upload responses; defaults to the virtual-hosted S3 URL
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "")

# Key-space layout
SUBMISSIONS_PREFIX = "submissions/"
SONGS_PREFIX = "songs/"
COVERS_PREFIX = "covers/"
METADATA_KEY = "metadata/songs.json"
PLAYLIST_KEY = "metadata/playlist.json"

# Where the JSON documents live: "s3" (next to the audio) or "file" (DATA_DIR, local dev)
METADATA_BACKEND = os.getenv("PHXRADIO_METADATA_BACKEND", "s3").lower()

# Signed URL lifetimes (seconds)
UPLOAD_URL_TTL_SEC = int(os.getenv("UPLOAD_URL_TTL_SEC", "600"))
PLAYBACK_URL_TTL_SEC = int(os.getenv("PLAYBACK_URL_TTL_SEC", "3600"))

# Read-modify-write attempts before a version conflict is reported
DOCUMENT_WRITE_ATTEMPTS = 3

# Static admin credential pair for the /admin basic-auth guard
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
