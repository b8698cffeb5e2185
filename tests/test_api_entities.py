import json

import pytest

# Forces a multipart body even when a test sends no real upload.
NOOP_FILE = {"noop": ("noop.txt", b"", "text/plain")}


def _png(name: str):
    return ("imgs", (name, b"\x89PNG fake", "image/png"))


@pytest.mark.parametrize("kind", ["blog", "projects", "led"])
def test_list_is_empty_array_initially(client, kind):
    resp = client.get(f"/api/{kind}")
    assert resp.status_code == 200
    assert resp.json() == []


def test_json_create_returns_full_entity(client):
    resp = client.post(
        "/api/blog",
        json={
            "title": "T",
            "title_uz": "T uz",
            "description": "D",
            "images": ["/a.png", "/b.png", "/a.png"],
            "links": ["x", "x", "y"],
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] > 0
    assert body["images"] == ["/a.png", "/b.png", "/a.png"]
    assert body["links"] == ["x", "y"]
    assert body["img"] == "/a.png"
    assert body["title_uz"] == "T uz"
    assert list(body) == [
        "id", "img", "images", "title", "title_uz", "title_en",
        "description", "description_uz", "description_en", "links",
    ]

    stored = client.get(f"/api/blog/{body['id']}").json()
    assert stored == body


def test_list_is_id_descending(client):
    ids = [client.post("/api/projects", json={"title": f"p{i}"}).json()["id"] for i in range(4)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 4

    listed = [p["id"] for p in client.get("/api/projects").json()]
    assert listed == sorted(ids, reverse=True)


def test_caps_hold_regardless_of_input(client):
    resp = client.post(
        "/api/projects",
        json={"images": [f"/{i}.png" for i in range(25)], "links": ["", "a", "b", "a", "c", "d", "e", "f", "g"]},
    )
    body = resp.json()
    assert len(body["images"]) == 10
    assert body["links"] == ["a", "b", "c", "d", "e"]


def test_get_unknown_id_is_404(client):
    resp = client.get("/api/blog/999")
    assert resp.status_code == 404
    assert resp.text == "Not found"
    assert resp.headers["content-type"].startswith("text/plain")


def test_led_has_location_and_no_links(client):
    body = client.post("/api/led", json={"title": "Screen", "location": "Yunusobod", "links": ["x"]}).json()
    assert body["location"] == "Yunusobod"
    assert "links" not in body
    assert client.get(f"/api/led/{body['id']}").json()["location"] == "Yunusobod"


def test_json_update_overwrites_row(client):
    post = client.post("/api/blog", json={"title": "old", "title_en": "old en", "images": ["/a.png"]}).json()

    resp = client.put(f"/api/blog/{post['id']}", json={"title": "new", "images": ["/b.png", "/c.png"]})
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}

    stored = client.get(f"/api/blog/{post['id']}").json()
    assert stored["title"] == "new"
    assert stored["title_en"] == ""
    assert stored["images"] == ["/b.png", "/c.png"]
    assert stored["img"] == "/b.png"


def test_post_to_id_is_an_update(client):
    item = client.post("/api/led", json={"title": "a"}).json()
    assert client.post(f"/api/led/{item['id']}", json={"title": "b"}).json() == {"status": "ok"}
    assert client.get(f"/api/led/{item['id']}").json()["title"] == "b"


def test_update_missing_id_succeeds_without_inserting(client):
    resp = client.put("/api/projects/777", json={"title": "ghost"})
    assert resp.status_code == 200
    assert client.get("/api/projects").json() == []


def test_delete_then_get_is_404(client):
    post = client.post("/api/blog", json={"title": "bye"}).json()
    resp = client.delete(f"/api/blog/{post['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert client.get(f"/api/blog/{post['id']}").status_code == 404


def test_delete_missing_id_leaves_table_unchanged(client):
    client.post("/api/led", json={"title": "stay"})
    resp = client.delete("/api/led/999")
    assert resp.status_code == 200
    assert [i["title"] for i in client.get("/api/led").json()] == ["stay"]


@pytest.mark.parametrize("body", [b"{not json", b"", b'{"images": "nope"}', b'{"title": 5}'])
def test_bad_json_body_is_400(client, body):
    resp = client.post("/api/blog", content=body, headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.text == "Invalid JSON"


def test_null_list_elements_are_accepted(client):
    resp = client.post("/api/projects", json={"images": ["/a.png", None], "links": ["x", None]})
    assert resp.status_code == 200
    assert resp.json()["images"] == ["/a.png", ""]
    assert resp.json()["links"] == ["x"]


def test_missing_id_segment_is_400(client):
    for method in ("get", "put", "delete"):
        resp = getattr(client, method)("/api/projects/")
        assert resp.status_code == 400
        assert resp.text == "Missing id"


def test_non_numeric_id_is_400(client):
    assert client.get("/api/blog/abc").status_code == 400


def test_unsupported_method_is_405(client):
    assert client.patch("/api/blog/1", json={}).status_code == 405
    assert client.delete("/api/blog").status_code == 405


def test_multipart_create_saves_uploads(client, settings):
    resp = client.post(
        "/api/blog",
        data={
            "title": "Launch",
            "title_uz": "Ishga tushirish",
            "description": "Body",
            "link1": "https://one.example",
            "link2": "https://one.example",
            "link3": "https://two.example",
        },
        files=[_png("a.png"), _png("b.png")],
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Launch"
    assert body["links"] == ["https://one.example", "https://two.example"]
    assert len(body["images"]) == 2
    assert body["img"] == body["images"][0]
    for url in body["images"]:
        assert url.startswith("/img/uploads/")
        assert (settings.site_root / url.lstrip("/")).is_file()

    # The immediate response only echoes primary-language fields ...
    assert body["title_uz"] == ""
    # ... but everything was stored.
    assert client.get(f"/api/blog/{body['id']}").json()["title_uz"] == "Ishga tushirish"


def test_multipart_create_with_legacy_single_img(client):
    body = client.post(
        "/api/projects",
        data={"title": "Legacy"},
        files=[("img", ("cover.jpg", b"jpeg", "image/jpeg"))],
    ).json()
    assert len(body["images"]) == 1
    assert body["images"][0].endswith("_cover.jpg")


def test_multipart_links_are_capped_at_five(client):
    resp = client.post(
        "/api/blog",
        data={
            "links": [f"https://r{i}.example" for i in range(8)],
            **{f"link{i}": f"https://n{i}.example" for i in range(1, 6)},
        },
        files=NOOP_FILE,
    )
    assert resp.json()["links"] == [f"https://r{i}.example" for i in range(5)]


def test_multipart_led_create_reads_location(client):
    body = client.post("/api/led", data={"title": "LED", "location": "Sergeli"}, files=NOOP_FILE).json()
    assert body["location"] == "Sergeli"
    assert body["images"] == []
    assert body["img"] == ""


def test_multipart_update_keeps_stored_images_when_none_given(client):
    post = client.post("/api/blog", json={"title": "t", "images": ["/x.png", "/y.png"]}).json()

    resp = client.put(f"/api/blog/{post['id']}", data={"title": "t2"}, files=NOOP_FILE)
    assert resp.json() == {"status": "ok"}

    stored = client.get(f"/api/blog/{post['id']}").json()
    assert stored["title"] == "t2"
    assert stored["images"] == ["/x.png", "/y.png"]
    assert stored["img"] == "/x.png"


def test_multipart_update_with_previous_images_and_new_upload(client):
    post = client.post("/api/projects", json={"title": "t", "images": ["/x.png", "/y.png"]}).json()

    client.put(
        f"/api/projects/{post['id']}",
        data={"imagesOld": json.dumps(["/y.png"])},
        files=[_png("new.png")],
    )
    stored = client.get(f"/api/projects/{post['id']}").json()
    assert stored["images"][0] == "/y.png"
    assert stored["images"][1].endswith("_new.png")
    assert len(stored["images"]) == 2


def test_multipart_update_prepends_replacement_img(client):
    item = client.post("/api/led", json={"title": "t", "images": ["/x.png"]}).json()

    client.post(
        f"/api/led/{item['id']}",
        data={"title": "t", "location": "Center"},
        files=[("img", ("cover.png", b"png", "image/png"))],
    )
    stored = client.get(f"/api/led/{item['id']}").json()
    assert stored["images"][0].endswith("_cover.png")
    assert stored["images"][1] == "/x.png"
    assert stored["img"] == stored["images"][0]
    assert stored["location"] == "Center"
