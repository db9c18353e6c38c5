import re

from fastapi import status
from fastapi.testclient import TestClient

from imageform.services.drafts import DraftStore
from tests.fixtures.fake_store import PUBLIC_BASE_URL
from tests.fixtures.files import PNG_BYTES, upload


def test__health(client: TestClient):
    response = client.get("/health")
    assert response.json() == {"status": "ok"}


def test__list_submissions__empty(client: TestClient):
    response = client.get("/submissions/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []


def test__create_submission__single_image(client: TestClient, store):
    response = client.post(
        "/submissions/",
        data={"title": "Trip", "description": "Beach"},
        files=[("single_image", upload("a.jpg"))],
    )

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    (bucket, key) = next(iter(store.objects))
    assert bucket == "images"
    assert re.fullmatch(r"\d+-a\.jpg", key)
    assert body["single_image_url"] == f"{PUBLIC_BASE_URL}/images/{key}"
    assert body["multiple_image_urls"] == []
    assert body["title"] == "Trip"
    assert body["id"] is not None
    assert body["created_at"]


def test__create_submission__multiple_images(client: TestClient, store):
    response = client.post(
        "/submissions/",
        data={"title": "Trip", "description": "Beach"},
        files=[
            ("multiple_images", upload("one.png")),
            ("multiple_images", upload("two.png")),
            ("multiple_images", upload("three.png")),
        ],
    )

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["single_image_url"] == ""
    assert [url.rsplit("-", 1)[1] for url in body["multiple_image_urls"]] == ["one.png", "two.png", "three.png"]
    assert len(store.objects) == 3


def test__new_submission_is_listed_first(client: TestClient):
    client.post("/submissions/", data={"title": "First", "description": "d"})
    assert [s["title"] for s in client.get("/submissions/").json()] == ["First"]

    client.post("/submissions/", data={"title": "Second", "description": "d"})

    assert [s["title"] for s in client.get("/submissions/").json()] == ["Second", "First"]


def test__draft_lifecycle(client: TestClient, store):
    # mount
    response = client.post("/drafts/")
    assert response.status_code == status.HTTP_201_CREATED
    draft_id = response.json()["id"]

    # edit fields
    response = client.patch(f"/drafts/{draft_id}", json={"title": "Trip", "description": "Beach"})
    assert response.json()["title"] == "Trip"

    # select files
    response = client.put(f"/drafts/{draft_id}/single-image", files={"image": upload("a.jpg")})
    single = response.json()["single_image"]
    assert single["filename"] == "a.jpg"

    response = client.put(
        f"/drafts/{draft_id}/multiple-images",
        files=[("images", upload("one.png")), ("images", upload("two.png"))],
    )
    previews = response.json()["multiple_images"]
    assert [p["filename"] for p in previews] == ["one.png", "two.png"]

    # previews are served while the draft holds them
    preview = client.get(single["url"])
    assert preview.status_code == status.HTTP_200_OK
    assert preview.content == PNG_BYTES
    assert preview.headers["content-type"] == "image/png"

    # submit
    response = client.post(f"/drafts/{draft_id}/submit")
    assert response.status_code == status.HTTP_201_CREATED
    assert len(response.json()["multiple_image_urls"]) == 2
    assert len(store.objects) == 3

    # reset after success, previews released
    state = client.get(f"/drafts/{draft_id}").json()
    assert state["status"] == "success"
    assert state["notification"] == {"kind": "success", "message": "Form submitted successfully!"}
    assert state["title"] == ""
    assert state["single_image"] is None
    assert client.get(single["url"]).status_code == status.HTTP_404_NOT_FOUND

    state = client.post(f"/drafts/{draft_id}/acknowledge").json()
    assert state["status"] == "idle"
    assert state["notification"] is None

    # unmount
    assert client.delete(f"/drafts/{draft_id}").status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/drafts/{draft_id}").status_code == status.HTTP_404_NOT_FOUND


def test__replaced_preview_is_released(client: TestClient, app):
    draft_id = client.post("/drafts/").json()["id"]
    first = client.put(f"/drafts/{draft_id}/single-image", files={"image": upload("a.jpg")}).json()["single_image"]

    client.put(f"/drafts/{draft_id}/single-image", files={"image": upload("b.jpg")})

    assert client.get(first["url"]).status_code == status.HTTP_404_NOT_FOUND
    assert len(app.state.drafts.previews) == 1


def test__abandoned_drafts_do_not_accumulate(client: TestClient, app):
    app.state.drafts = DraftStore(max_drafts=10)

    for _ in range(50):
        client.post("/drafts/")

    assert len(app.state.drafts) == 10
