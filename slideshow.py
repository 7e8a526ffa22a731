"""
slideshow.py — Slideshow image management
==========================================
Listing, upload, delete and reorder on top of an ImageStore (local
directory in development, S3 in production).

Order on screen is ascending by the first number in the file name, so
uploads are named "<millis>-<original>" and a reorder renames the chosen
sequence to slide01.jpg, slide02.png, ...
"""

import logging
import os
import time
import uuid
from typing import Any, Dict, Iterable, List

from werkzeug.utils import secure_filename

from errors import NotFoundError, ValidationError
from storage import IMAGE_EXTENSIONS, ImageStore, slide_name

log = logging.getLogger("dashboard.slideshow")

CONTENT_TYPES = {".png": "image/png", ".jpg": "image/jpeg", ".jpeg": "image/jpeg"}


class Slideshow:
    def __init__(self, images: ImageStore):
        self.images = images

    def list(self) -> List[Dict[str, Any]]:
        return self.images.list()

    def upload(self, files: Iterable[Any], replace_all: bool = False) -> List[Dict[str, Any]]:
        """Store uploaded files (werkzeug FileStorage). Non png/jpg files are skipped."""
        files = [f for f in files if f and f.filename]
        if not files:
            raise ValidationError("No files provided")

        if replace_all:
            for image in self.images.list():
                self.images.delete(image["name"])
            log.info("[SLIDESHOW] cleared existing images")

        uploaded = []
        for f in files:
            base_name = secure_filename(os.path.basename(f.filename))
            ext = os.path.splitext(base_name)[1].lower()
            if ext not in IMAGE_EXTENSIONS:
                log.info("[SLIDESHOW] skipping %s: not an image", f.filename)
                continue
            name = f"{int(time.time() * 1000)}-{base_name}"
            saved = self.images.save(name, f.read(), CONTENT_TYPES[ext])
            uploaded.append({**saved, "originalName": base_name})
        log.info("[SLIDESHOW] uploaded %d image(s)", len(uploaded))
        return uploaded

    def delete(self, filename: str) -> None:
        if not filename:
            raise ValidationError("Filename required")
        if not self.images.delete(filename):
            raise NotFoundError("File not found")
        log.info("[SLIDESHOW] deleted %s", filename)

    def reorder(self, image_order: Any) -> List[str]:
        """Rename images to slideNN.<ext> following image_order. Returns the new names."""
        if not isinstance(image_order, list):
            raise ValidationError("Image order must be an array")

        existing = {img["name"] for img in self.images.list()}
        ordered: List[str] = []
        for name in image_order:
            if not isinstance(name, str) or name not in existing:
                log.warning("[SLIDESHOW] reorder: %s not found, skipped", name)
            elif name not in ordered:
                ordered.append(name)

        # Two phases so slide02 -> slide01 cannot clobber an image still waiting to move
        token = uuid.uuid4().hex[:8]
        staged = []
        for name in ordered:
            ext = os.path.splitext(name)[1].lower()
            temp = f"reorder-{token}-{len(staged):03d}{ext}"
            if self.images.rename(name, temp):
                staged.append((temp, name))
            else:
                log.warning("[SLIDESHOW] reorder: %s vanished before it could be moved", name)

        renamed = []
        for temp, name in staged:
            final = slide_name(len(renamed) + 1, name)
            if self.images.rename(temp, final):
                renamed.append(final)
            else:
                log.error("[SLIDESHOW] reorder: staged copy %s missing, %s not placed", temp, name)
        log.info("[SLIDESHOW] reordered %d image(s)", len(renamed))
        return renamed
