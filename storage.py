"""
storage.py — Dashboard storage abstraction
==========================================
Two concerns, one interface each, one backend picked at startup:

  KeyValueStore  — small JSON blobs (feed registries, events, settings)
      FileStore    one JSON file per key under DATA_DIR (local dev)
      RedisStore   Redis / managed KV (production, REDIS_URL)

  ImageStore     — slideshow images
      LocalImageStore  files under UPLOAD_DIR, served from /uploads/
      S3ImageStore     objects under S3_PREFIX in S3_BUCKET

Usage:
    from storage import build_store, build_image_store
    store = build_store(config)
    feeds = store.get("rss_feeds", [])
    store.set("rss_feeds", feeds)

Writes are last-write-wins; nothing here serializes concurrent admins.
"""

import os
import re
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from errors import StorageError

log = logging.getLogger("dashboard.storage")

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg")
_KEY_SAFE_RE = re.compile(r"[^A-Za-z0-9_.-]")
_FIRST_NUMBER_RE = re.compile(r"\d+")


# ═══════════════════════════════════════════
# KEY-VALUE STORE
# ═══════════════════════════════════════════

class KeyValueStore:
    """get/set/delete/list by key. Values are JSON-serializable."""

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError

    def keys(self, prefix: str = "") -> List[str]:
        raise NotImplementedError


class FileStore(KeyValueStore):
    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        os.makedirs(self.data_dir, exist_ok=True)

    def _path(self, key: str) -> str:
        # "social_rss_posts_count:feed-1" -> "social_rss_posts_count__feed-1.json"
        safe = _KEY_SAFE_RE.sub("_", key.replace(":", "__"))
        return os.path.join(self.data_dir, f"{safe}.json")

    def get(self, key, default=None):
        path = self._path(key)
        if not os.path.exists(path):
            return default
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError) as e:
            log.error("[STORE] could not read %s: %s", path, e)
            return default

    def set(self, key, value):
        path = self._path(key)
        tmp = f"{path}.{uuid.uuid4().hex[:8]}.tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as fh:
                json.dump(value, fh, ensure_ascii=False, indent=2)
            os.replace(tmp, path)
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}")

    def delete(self, key):
        path = self._path(key)
        if not os.path.exists(path):
            return False
        os.remove(path)
        return True

    def keys(self, prefix=""):
        found = []
        for name in sorted(os.listdir(self.data_dir)):
            if not name.endswith(".json"):
                continue
            key = name[:-len(".json")].replace("__", ":")
            if key.startswith(prefix):
                found.append(key)
        return found


class RedisStore(KeyValueStore):
    def __init__(self, redis_url: str = None, client=None):
        if client is None:
            import redis
            client = redis.Redis.from_url(redis_url, decode_responses=True)
        self.client = client

    def get(self, key, default=None):
        raw = self.client.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            log.error("[STORE] key %s holds non-JSON data", key)
            return default

    def set(self, key, value):
        try:
            self.client.set(key, json.dumps(value, ensure_ascii=False))
        except Exception as e:
            raise StorageError(f"Failed to write {key}: {e}")

    def delete(self, key):
        return bool(self.client.delete(key))

    def keys(self, prefix=""):
        return sorted(self.client.scan_iter(match=f"{prefix}*"))


def build_store(config) -> KeyValueStore:
    """Pick the key-value backend once, at startup."""
    if config.storage_backend == "redis":
        if not config.redis_url:
            raise RuntimeError("STORAGE_BACKEND=redis requires REDIS_URL")
        log.info("[STORE] using Redis key-value store")
        return RedisStore(config.redis_url)
    log.info("[STORE] using file store at %s", config.data_dir)
    return FileStore(config.data_dir)


# ═══════════════════════════════════════════
# IMAGE STORE
# ═══════════════════════════════════════════

def is_slide_filename(name: str) -> bool:
    return os.path.splitext(name)[1].lower() in IMAGE_EXTENSIONS


def slide_sort_key(name: str) -> int:
    m = _FIRST_NUMBER_RE.search(name)
    return int(m.group(0)) if m else 0


def slide_name(position: int, current_name: str) -> str:
    ext = os.path.splitext(current_name)[1].lstrip(".").lower()
    return f"slide{position:02d}.{ext}"


class ImageStore:
    def list(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def save(self, name: str, data: bytes, content_type: str = "image/jpeg") -> Dict[str, Any]:
        raise NotImplementedError

    def delete(self, name: str) -> bool:
        raise NotImplementedError

    def rename(self, old_name: str, new_name: str) -> bool:
        raise NotImplementedError


class LocalImageStore(ImageStore):
    def __init__(self, upload_dir: str, url_prefix: str = "/uploads/"):
        self.upload_dir = upload_dir
        self.url_prefix = url_prefix if url_prefix.endswith("/") else url_prefix + "/"
        os.makedirs(self.upload_dir, exist_ok=True)

    def _path(self, name: str) -> str:
        path = os.path.abspath(os.path.join(self.upload_dir, name))
        root = os.path.abspath(self.upload_dir)
        if os.path.dirname(path) != root:
            raise StorageError(f"Invalid image name: {name}", 400)
        return path

    def list(self):
        images = []
        for name in os.listdir(self.upload_dir):
            if not is_slide_filename(name):
                continue
            stat = os.stat(os.path.join(self.upload_dir, name))
            images.append({
                "name": name,
                "path": f"{self.url_prefix}{name}",
                "size": stat.st_size,
                "lastModified": int(stat.st_mtime * 1000),
            })
        images.sort(key=lambda img: slide_sort_key(img["name"]))
        return images

    def save(self, name, data, content_type="image/jpeg"):
        with open(self._path(name), "wb") as fh:
            fh.write(data)
        return {"name": name, "path": f"{self.url_prefix}{name}"}

    def delete(self, name):
        path = self._path(name)
        if not os.path.exists(path):
            return False
        os.remove(path)
        return True

    def rename(self, old_name, new_name):
        old_path = self._path(old_name)
        if not os.path.exists(old_path):
            return False
        os.replace(old_path, self._path(new_name))
        return True


class S3ImageStore(ImageStore):
    def __init__(self, bucket: str, prefix: str = "slideshow/", region: str = "us-east-1",
                 public_base_url: Optional[str] = None, client=None):
        if client is None:
            import boto3
            client = boto3.client("s3", region_name=region)
        self.client = client
        self.bucket = bucket
        self.prefix = prefix if prefix.endswith("/") else prefix + "/"
        self.public_base_url = (public_base_url or f"https://{bucket}.s3.{region}.amazonaws.com").rstrip("/")

    def _key(self, name: str) -> str:
        return f"{self.prefix}{os.path.basename(name)}"

    def _url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def list(self):
        images = []
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=self.prefix):
            for obj in page.get("Contents", []):
                name = obj["Key"][len(self.prefix):]
                if not name or "/" in name or not is_slide_filename(name):
                    continue
                modified = obj.get("LastModified")
                images.append({
                    "name": name,
                    "path": self._url(obj["Key"]),
                    "size": obj.get("Size", 0),
                    "lastModified": int(modified.timestamp() * 1000) if modified else 0,
                })
        images.sort(key=lambda img: slide_sort_key(img["name"]))
        return images

    def save(self, name, data, content_type="image/jpeg"):
        key = self._key(name)
        self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        return {"name": name, "path": self._url(key)}

    def _exists(self, key: str) -> bool:
        from botocore.exceptions import ClientError
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError:
            return False

    def delete(self, name):
        key = self._key(name)
        if not self._exists(key):
            return False
        self.client.delete_object(Bucket=self.bucket, Key=key)
        return True

    def rename(self, old_name, new_name):
        # S3 has no rename: server-side copy, then delete the old key
        old_key, new_key = self._key(old_name), self._key(new_name)
        if not self._exists(old_key):
            return False
        self.client.copy_object(Bucket=self.bucket, Key=new_key,
                                CopySource={"Bucket": self.bucket, "Key": old_key})
        self.client.delete_object(Bucket=self.bucket, Key=old_key)
        return True


def build_image_store(config) -> ImageStore:
    if config.image_backend == "s3":
        if not config.s3_bucket:
            raise RuntimeError("IMAGE_BACKEND=s3 requires S3_BUCKET")
        log.info("[STORE] using S3 image store s3://%s/%s", config.s3_bucket, config.s3_prefix)
        return S3ImageStore(config.s3_bucket, config.s3_prefix, config.aws_region,
                            config.s3_public_base_url)
    log.info("[STORE] using local image store at %s", config.upload_dir)
    return LocalImageStore(config.upload_dir, config.upload_url_prefix)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
