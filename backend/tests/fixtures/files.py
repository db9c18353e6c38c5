from imageform.services.upload import ImageFile

PNG_BYTES = b"\x89PNG\r\n\x1a\n fake image bytes"


def image(name: str, content: bytes = PNG_BYTES) -> ImageFile:
    return ImageFile(filename=name, content=content, content_type="image/png")


def upload(name: str, content: bytes = PNG_BYTES):
    """A (filename, bytes, content type) triple for TestClient multipart posts."""
    return (name, content, "image/png")
