"""
YouTube Data API v3 upload.

Reads the authorized-user token written by the OAuth consent flow plus the
``installed`` client secrets, refreshes the access token when it expired and
writes it back so the next run starts fresh.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

from .exceptions import CredentialsError, TransientFault

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/youtube.upload", "https://www.googleapis.com/auth/youtube"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def token_expiry(token: dict) -> datetime | None:
    """
    Expiry of the stored access token as a naive UTC datetime (what
    google-auth compares against). Accepts google-auth's ISO ``expiry`` and
    the epoch-milliseconds ``expiry_date`` written by Node OAuth clients.
    """
    if token.get("expiry"):
        expiry = datetime.fromisoformat(str(token["expiry"]).replace("Z", "+00:00"))
        if expiry.tzinfo is not None:
            expiry = expiry.astimezone(timezone.utc).replace(tzinfo=None)
        return expiry
    if token.get("expiry_date"):
        return datetime.fromtimestamp(int(token["expiry_date"]) / 1000, tz=timezone.utc).replace(tzinfo=None)
    return None


def load_credentials(token_path: Path, credentials_path: Path) -> Credentials:
    try:
        token = json.loads(Path(token_path).read_text("utf-8"))
        secrets = json.loads(Path(credentials_path).read_text("utf-8"))["installed"]
        expiry = token_expiry(token)
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise CredentialsError(f"Unable to read YouTube credentials: {e}") from e

    creds = Credentials(
        token=token.get("access_token") or token.get("token"),
        refresh_token=token.get("refresh_token"),
        token_uri=secrets.get("token_uri", TOKEN_URI),
        client_id=secrets["client_id"],
        client_secret=secrets["client_secret"],
        scopes=token.get("scopes") or SCOPES,
        expiry=expiry,
    )

    if not creds.valid:
        if not creds.refresh_token:
            raise CredentialsError("YouTube token expired and has no refresh token")
        try:
            creds.refresh(Request())
        except RefreshError as e:
            raise CredentialsError(f"YouTube token refresh rejected: {e}") from e
        Path(token_path).write_text(creds.to_json(), "utf-8")
        logger.info("Refreshed YouTube access token")
    return creds


class YouTubeUploader:
    def __init__(self, token_path: Path, credentials_path: Path, *, category_id: str = "10",
                 privacy_status: str = "private", video_license: str = "youtube"):
        self.token_path = token_path
        self.credentials_path = credentials_path
        self.category_id = category_id
        self.privacy_status = privacy_status
        self.video_license = video_license

    def _client(self):
        creds = load_credentials(self.token_path, self.credentials_path)
        return build("youtube", "v3", credentials=creds, cache_discovery=False)

    def upload(self, video_path: Path, *, title: str, description: str, tags: list[str]) -> str:
        youtube = self._client()
        body = {
            "snippet": {
                "title": title[:100],  # API hard limit
                "description": description,
                "tags": tags,
                "categoryId": self.category_id,
            },
            "status": {
                "privacyStatus": self.privacy_status,
                "embeddable": True,
                "license": self.video_license,
            },
        }
        media = MediaFileUpload(str(video_path), mimetype="video/mp4", resumable=True)
        try:
            video = youtube.videos().insert(part="snippet,status", body=body, media_body=media).execute()
        except HttpError as e:
            raise TransientFault(f"YouTube API error: {e}") from e
        return video["id"]

    def add_to_playlist(self, video_id: str, playlist_id: str) -> bool:
        """
        Attach an already uploaded video to a playlist. Failures are logged and
        reported as ``False``; retrying would mean uploading the video again.
        """
        try:
            self._client().playlistItems().insert(part="snippet", body={
                "snippet": {
                    "playlistId": playlist_id,
                    "resourceId": {"kind": "youtube#video", "videoId": video_id},
                },
            }).execute()
        except HttpError as e:
            logger.warning("Could not add video %s to playlist %s: %s", video_id, playlist_id, e)
            return False
        return True
