"""
Cloudflare R2 (S3-compatible) client for receipt images.

Signs requests with SigV4 query-string authentication and talks to the
bucket with plain ``requests`` calls, so no AWS SDK is needed.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
import hashlib
import hmac
import logging
from typing import Dict, Optional
from urllib.parse import quote

import requests

from ..core.config import settings

logger = logging.getLogger(__name__)

R2_REQUEST_TIMEOUT_SECONDS = 30


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def _canonical_query(params: Dict[str, str]) -> str:
    return "&".join(
        f"{quote(key, safe='-_.~')}={quote(str(params[key]), safe='-_.~')}"
        for key in sorted(params)
    )


@dataclass
class SignedRequest:
    url: str
    headers: Dict[str, str]


class R2StorageClient:
    """Minimal SigV4 signer plus PUT/DELETE helpers for one bucket."""

    region = "auto"
    service = "s3"
    algorithm = "AWS4-HMAC-SHA256"

    def __init__(self) -> None:
        if (
            not settings.r2_bucket_name
            or not settings.r2_access_key_id
            or not settings.r2_secret_access_key.get_secret_value()
        ):
            raise RuntimeError("R2 configuration is missing; check r2_* settings")

        self.access_key_id = settings.r2_access_key_id
        self.secret_key = settings.r2_secret_access_key.get_secret_value()
        self.bucket_name = settings.r2_bucket_name
        self.host = f"{settings.r2_account_id}.r2.cloudflarestorage.com"

    def sign(
        self,
        method: str,
        object_key: str,
        expires_seconds: int = 300,
        content_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SignedRequest:
        now = now or datetime.now(timezone.utc)
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        datestamp = now.strftime("%Y%m%d")
        canonical_uri = f"/{self.bucket_name}/{object_key}"
        credential_scope = f"{datestamp}/{self.region}/{self.service}/aws4_request"

        params: Dict[str, str] = {
            "X-Amz-Algorithm": self.algorithm,
            "X-Amz-Credential": f"{self.access_key_id}/{credential_scope}",
            "X-Amz-Date": amz_date,
            "X-Amz-Expires": str(expires_seconds),
            "X-Amz-SignedHeaders": "host",
            "X-Amz-Content-Sha256": "UNSIGNED-PAYLOAD",
        }
        if content_type:
            params["content-type"] = content_type

        query = _canonical_query(params)
        canonical_request = "\n".join(
            [method.upper(), canonical_uri, query, f"host:{self.host}\n", "host", "UNSIGNED-PAYLOAD"]
        )
        string_to_sign = "\n".join(
            [
                self.algorithm,
                amz_date,
                credential_scope,
                hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
            ]
        )

        signing_key = _hmac(("AWS4" + self.secret_key).encode("utf-8"), datestamp)
        for part in (self.region, self.service, "aws4_request"):
            signing_key = _hmac(signing_key, part)
        signature = hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

        url = f"https://{self.host}{canonical_uri}?{query}&X-Amz-Signature={signature}"
        headers = {"Content-Type": content_type} if content_type else {}
        return SignedRequest(url=url, headers=headers)

    def upload_bytes(self, object_key: str, data: bytes, content_type: str) -> bool:
        signed = self.sign("PUT", object_key, content_type=content_type)
        resp = requests.put(
            signed.url, data=data, headers=signed.headers, timeout=R2_REQUEST_TIMEOUT_SECONDS
        )
        if not 200 <= resp.status_code < 300:
            logger.error(f"R2 upload of {object_key} failed: status={resp.status_code}")
            return False
        return True

    def delete_object(self, object_key: str) -> bool:
        signed = self.sign("DELETE", object_key)
        resp = requests.delete(signed.url, timeout=R2_REQUEST_TIMEOUT_SECONDS)
        return 200 <= resp.status_code < 300 or resp.status_code == 404

    def presigned_get_url(self, object_key: str, expires_seconds: int = 3600) -> str:
        return self.sign("GET", object_key, expires_seconds=expires_seconds).url
