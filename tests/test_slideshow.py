"""
tests/test_slideshow.py — Slideshow upload, delete, reorder (local store)
"""

import io
import os

import pytest
from werkzeug.datastructures import FileStorage

from errors import NotFoundError, StorageError, ValidationError
from slideshow import Slideshow
from storage import LocalImageStore, slide_sort_key


def upload(name, data=b"\x89PNG fake"):
    return FileStorage(stream=io.BytesIO(data), filename=name)


@pytest.fixture
def upload_dir(tmp_path):
    return str(tmp_path / "uploads")


@pytest.fixture
def show(upload_dir):
    return Slideshow(LocalImageStore(upload_dir))


def seed(upload_dir, *names):
    os.makedirs(upload_dir, exist_ok=True)
    for name in names:
        with open(os.path.join(upload_dir, name), "wb") as fh:
            fh.write(name.encode())


def test_list_orders_by_first_number(show, upload_dir):
    seed(upload_dir, "slide10.jpg", "slide2.png", "slide01.jpeg", "notes.txt")
    assert [img["name"] for img in show.list()] == ["slide01.jpeg", "slide2.png", "slide10.jpg"]
    assert show.list()[0]["path"] == "/uploads/slide01.jpeg"


def test_slide_sort_key_without_number():
    assert slide_sort_key("cover.jpg") == 0


def test_upload_skips_non_images(show):
    uploaded = show.upload([upload("team photo.jpg"), upload("clip.gif"), upload("deck.pdf")])
    assert len(uploaded) == 1
    assert uploaded[0]["originalName"] == "team_photo.jpg"
    assert uploaded[0]["name"].endswith("-team_photo.jpg")
    assert [img["name"] for img in show.list()] == [uploaded[0]["name"]]


def test_upload_requires_files(show):
    with pytest.raises(ValidationError):
        show.upload([])


def test_replace_all_clears_existing(show, upload_dir):
    seed(upload_dir, "slide01.jpg", "slide02.jpg")
    show.upload([upload("fresh.png")], replace_all=True)
    names = [img["name"] for img in show.list()]
    assert len(names) == 1
    assert names[0].endswith("-fresh.png")


def test_delete(show, upload_dir):
    seed(upload_dir, "slide01.jpg")
    show.delete("slide01.jpg")
    assert show.list() == []
    with pytest.raises(NotFoundError):
        show.delete("slide01.jpg")


def test_delete_rejects_path_traversal(show):
    with pytest.raises(StorageError) as exc:
        show.delete("../secrets.jpg")
    assert exc.value.status_code == 400


def test_reorder_renames_to_slide_sequence(show, upload_dir):
    seed(upload_dir, "slide01.jpg", "slide02.png", "1700000000000-cover.jpeg")
    renamed = show.reorder(["1700000000000-cover.jpeg", "slide02.png", "slide01.jpg"])
    assert renamed == ["slide01.jpeg", "slide02.png", "slide03.jpg"]

    listed = show.list()
    assert [img["name"] for img in listed] == ["slide01.jpeg", "slide02.png", "slide03.jpg"]
    # contents moved with the names: nothing was overwritten
    with open(os.path.join(upload_dir, "slide01.jpeg"), "rb") as fh:
        assert fh.read() == b"1700000000000-cover.jpeg"
    with open(os.path.join(upload_dir, "slide03.jpg"), "rb") as fh:
        assert fh.read() == b"slide01.jpg"


def test_reorder_skips_unknown_names(show, upload_dir):
    seed(upload_dir, "a.jpg")
    assert show.reorder(["missing.jpg", "a.jpg"]) == ["slide01.jpg"]


def test_reorder_ignores_repeated_names(show, upload_dir):
    seed(upload_dir, "100-a.jpg", "200-b.jpg")
    renamed = show.reorder(["100-a.jpg", "100-a.jpg", "200-b.jpg"])
    assert renamed == ["slide01.jpg", "slide02.jpg"]
    assert [img["name"] for img in show.list()] == renamed
    with open(os.path.join(upload_dir, "slide02.jpg"), "rb") as fh:
        assert fh.read() == b"200-b.jpg"


def test_reorder_requires_a_list(show):
    with pytest.raises(ValidationError):
        show.reorder("slide01.jpg")
