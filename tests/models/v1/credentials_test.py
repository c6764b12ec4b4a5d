"""Tests for decoding image push credentials."""

from __future__ import annotations

from gradient.models.v1.notebook import (
    DecodedImageUpload,
    ImageUpload,
    NotebookUpload,
    decode_credentials,
    has_credentials,
)

from ...support.data import read_notebook


def test_no_credentials() -> None:
    assert not has_credentials(None)
    assert decode_credentials(None) == DecodedImageUpload()
    assert NotebookUpload().decoded_image_credentials() == (
        DecodedImageUpload()
    )

    # Presence is structural, even if every field is empty.
    upload = ImageUpload()
    assert upload.has_credentials()
    assert has_credentials(upload)
    assert upload.decode() == DecodedImageUpload()


def test_decode() -> None:
    upload = ImageUpload(username="dXNlcg==", password="cGFzcw==")
    decoded = upload.decode()
    assert decoded.username == "user"
    assert decoded.password == "pass"
    assert decoded.registry == ""
    assert decoded.repository == ""

    notebook = read_notebook("running.yaml")
    assert notebook.spec.upload.decoded_image_credentials() == (
        DecodedImageUpload(
            registry="docker.io",
            repository="example/notebook",
            username="user",
            password="pass",
        )
    )


def test_whitespace() -> None:
    upload = ImageUpload(
        username="ICBhZG1pbgkK",
        password="cGFz\ncw==\n",
        repository="IGV4YW1wbGUvbm90ZWJvb2sgCg==",
    )
    decoded = decode_credentials(upload)
    assert decoded.username == "admin"
    assert decoded.password == "pass"
    assert decoded.repository == "example/notebook"


def test_invalid_fields() -> None:
    upload = ImageUpload(
        registry="ZG9ja2VyLmlv",
        repository="not base64!",
        username="dXNlcg",
        password="//4=",
    )
    decoded = decode_credentials(upload)
    assert decoded == DecodedImageUpload(registry="docker.io")

    upload = ImageUpload(username="%%%", password="cGFzcw==")
    decoded = decode_credentials(upload)
    assert decoded.username == ""
    assert decoded.password == "pass"


def test_repr() -> None:
    upload = ImageUpload(username="dXNlcg==", password="c2VrcmV0")
    assert "c2VrcmV0" not in repr(upload)
    decoded = upload.decode()
    assert "sekret" not in repr(decoded)
    assert "sekret" not in str(decoded)
    assert "user" in repr(decoded)


def test_non_ascii_field() -> None:
    upload = ImageUpload(
        registry="ZG9ja2VyLmlv", username="dXNlcg==", password="pässwörd"
    )
    decoded = upload.decode()
    assert decoded == DecodedImageUpload(registry="docker.io", username="user")
