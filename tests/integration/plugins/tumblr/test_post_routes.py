"""
Integration tests for the post routes and the directive pipeline
"""

import time

import pytest

from conftest import TEST_USER_ID, assert_valid_signature, form_params
from models import Post, User

pytestmark = [pytest.mark.integration, pytest.mark.directives]

PUBLISH_PATH = "/v2/blog/testblog.tumblr.com/post"

PHOTO_POST = {
    "meta": {"status": 200, "msg": "OK"},
    "response": {
        "posts": [{
            "id": 123,
            "type": "photo",
            "photos": [
                {"original_size": {"url": "https://64.media.tumblr.com/a1.jpg"}},
                {"original_size": {"url": "https://64.media.tumblr.com/a2.jpg"}},
            ]
        }]
    }
}


def wait_for_requests(fake_tumblr, path, count=1, timeout=5.0):
    """Poll until the background workers have sent `count` requests to path."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        requests = fake_tumblr.requests_to(path)
        if len(requests) >= count:
            return requests
        time.sleep(0.01)
    return fake_tumblr.requests_to(path)


class TestCreatePost:
    def test_plain_post(self, client):
        response = client.post("/posts", json={"body": "Just some text"})

        assert response.status_code == 201
        body = response.json()
        assert body["body"] == "Just some text"
        assert body["media_urls"] == []
        assert body["published"] == 0

    def test_images_are_attached(self, client, fake_tumblr):
        fake_tumblr.add("GET", "/v2/blog/a.tumblr.com/posts", json=PHOTO_POST)

        response = client.post(
            "/posts",
            json={"body": "I like pictures!\n!images:http://a.tumblr.com/post/123/x\nMore text\n"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["body"] == "I like pictures!\n\nMore text\n"
        assert body["media_urls"] == [
            "https://64.media.tumblr.com/a1.jpg",
            "https://64.media.tumblr.com/a2.jpg",
        ]

    def test_broken_permalink_does_not_fail_the_post(self, client, fake_tumblr, test_db):
        fake_tumblr.add("GET", "/v2/blog/a.tumblr.com/posts", status_code=500, text="error")

        response = client.post("/posts", json={"body": "Look !images:http://a.tumblr.com/post/1"})

        assert response.status_code == 201
        assert response.json()["media_urls"] == []
        assert test_db.query(Post).count() == 1

    def test_tumble_publishes_in_background(self, client, fake_tumblr, linked_user, consumer):
        fake_tumblr.add("POST", PUBLISH_PATH, status_code=201, json={"response": {"id_string": "42"}})

        response = client.post("/posts", json={"body": "Hello Tumblr\n!tumble\n"})

        assert response.status_code == 201
        assert response.json()["body"] == "Hello Tumblr\n\n"
        assert response.json()["published"] == 1

        requests = wait_for_requests(fake_tumblr, PUBLISH_PATH)
        assert len(requests) == 1
        assert form_params(requests[0]) == {"type": "text", "body": "Hello Tumblr"}
        assert_valid_signature(requests[0], consumer.secret, "access-secret")

    def test_tumble_without_link_still_saves_post(self, client, fake_tumblr):
        response = client.post("/posts", json={"body": "Hello !tumble"})

        assert response.status_code == 201
        assert response.json()["published"] == 0
        assert fake_tumblr.requests_to(PUBLISH_PATH) == []

    def test_body_is_required(self, client):
        assert client.post("/posts", json={}).status_code == 422

    def test_requires_signed_in_user(self, anonymous_client):
        assert anonymous_client.post("/posts", json={"body": "x"}).status_code == 401


class TestPostCrud:
    def test_list_and_get(self, client):
        first = client.post("/posts", json={"body": "first"}).json()
        second = client.post("/posts", json={"body": "second"}).json()

        listed = client.get("/posts").json()
        assert [post["id"] for post in listed] == [first["id"], second["id"]]

        response = client.get(f"/posts/{second['id']}")
        assert response.status_code == 200
        assert response.json()["body"] == "second"

    def test_update_reprocesses_directives(self, client, fake_tumblr):
        fake_tumblr.add("GET", "/v2/blog/a.tumblr.com/posts", json=PHOTO_POST)
        post = client.post("/posts", json={"body": "draft"}).json()

        response = client.put(f"/posts/{post['id']}", json={"body": "final !images:http://a.tumblr.com/post/123"})

        assert response.status_code == 200
        assert response.json()["body"] == "final "
        assert len(response.json()["media_urls"]) == 2
        assert client.get(f"/posts/{post['id']}").json()["body"] == "final "

    def test_delete(self, client):
        post = client.post("/posts", json={"body": "to delete"}).json()

        response = client.delete(f"/posts/{post['id']}")

        assert response.status_code == 204
        assert client.get(f"/posts/{post['id']}").status_code == 404

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
    def test_missing_post_returns_404(self, client, method):
        kwargs = {"json": {"body": "x"}} if method == "PUT" else {}

        response = client.request(method, "/posts/999", **kwargs)

        assert response.status_code == 404
        assert response.json()["detail"] == "Post not found"

    def test_posts_of_other_users_are_hidden(self, client, test_db):
        other = User(id="other-user-id", username="other", display_name="Other")
        test_db.add(other)
        test_db.add(Post(user_id=other.id, body="secret", media_urls=[]))
        test_db.commit()
        other_post = test_db.query(Post).filter(Post.user_id == "other-user-id").first()

        assert client.get(f"/posts/{other_post.id}").status_code == 404
        assert client.get("/posts").json() == []
        assert client.delete(f"/posts/{other_post.id}").status_code == 404

    def test_posts_belong_to_signed_in_user(self, client, test_db):
        client.post("/posts", json={"body": "mine"})

        assert test_db.query(Post).one().user_id == TEST_USER_ID


class TestSecurityHeaders:
    CSP = "default-src 'none'; style-src 'self';"

    def test_posts_carry_content_security_policy(self, client):
        response = client.get("/posts")

        assert response.status_code == 200
        assert response.headers["content-security-policy"] == self.CSP

    def test_error_responses_carry_content_security_policy(self, anonymous_client):
        response = anonymous_client.get("/posts")

        assert response.status_code == 401
        assert response.headers["content-security-policy"] == self.CSP
