"""
Integration tests for likes, playlists, discovery and health endpoints.
"""
from fastapi.testclient import TestClient

from conftest import seed_playlist, seed_user, seed_video, viewer
from videovault.core.circuit_breaker import CircuitState
from videovault.models.schemas import Collections

API = "/api/v1"


class TestLikeAPI:
    def test_toggle_video_like(self, test_client: TestClient, store, alice, bob):
        video = seed_video(store, alice)

        liked = test_client.post(f"{API}/likes/toggle/v/{video['id']}", headers=viewer(bob))
        unliked = test_client.post(f"{API}/likes/toggle/v/{video['id']}", headers=viewer(bob))

        assert liked.json()["data"] == {"targetType": "video", "targetId": video["id"], "isLiked": True}
        assert liked.json()["message"] == "Video liked successfully"
        assert unliked.json()["data"]["isLiked"] is False

    def test_toggle_requires_viewer(self, test_client: TestClient, store, alice):
        video = seed_video(store, alice)

        response = test_client.post(f"{API}/likes/toggle/v/{video['id']}")

        assert response.status_code == 401

    def test_toggle_tweet_like_missing(self, test_client: TestClient, bob):
        response = test_client.post(f"{API}/likes/toggle/t/{bob['id']}", headers=viewer(bob))

        assert response.status_code == 404

    def test_liked_videos(self, test_client: TestClient, store, alice, bob):
        video = seed_video(store, alice, title="Liked")
        test_client.post(f"{API}/likes/toggle/v/{video['id']}", headers=viewer(bob))

        response = test_client.get(f"{API}/likes/videos", headers=viewer(bob))

        items = response.json()["data"]["items"]
        assert [item["video"]["title"] for item in items] == ["Liked"]
        assert items[0]["video"]["isLiked"] is True
        assert "likedAt" in items[0]


class TestPlaylistAPI:
    def test_playlist_lifecycle(self, test_client: TestClient, store, alice):
        video = seed_video(store, alice, title="Track", views=9)

        created = test_client.post(
            f"{API}/playlists",
            json={"name": "Mix", "description": "Weekend"},
            headers=viewer(alice),
        )
        playlist_id = created.json()["data"]["id"]
        added = test_client.patch(
            f"{API}/playlists/add/{video['id']}/{playlist_id}", headers=viewer(alice)
        )
        fetched = test_client.get(f"{API}/playlists/{playlist_id}")
        removed = test_client.patch(
            f"{API}/playlists/remove/{video['id']}/{playlist_id}", headers=viewer(alice)
        )
        deleted = test_client.delete(f"{API}/playlists/{playlist_id}", headers=viewer(alice))

        assert created.status_code == 201
        assert added.json()["data"]["videos"] == [video["id"]]
        view = fetched.json()["data"]
        assert view["totalVideos"] == 1
        assert view["totalViews"] == 9
        assert view["videos"][0]["owner"]["username"] == "alice"
        assert removed.json()["data"]["videos"] == []
        assert deleted.json()["message"] == "Playlist deleted"

    def test_update_playlist_forbidden(self, test_client: TestClient, store, alice, bob):
        playlist = seed_playlist(store, alice)

        response = test_client.patch(
            f"{API}/playlists/{playlist['id']}",
            json={"name": "Mine now", "description": "x"},
            headers=viewer(bob),
        )

        assert response.status_code == 403

    def test_user_playlists(self, test_client: TestClient, store, alice):
        seed_playlist(store, alice, name="One")
        seed_playlist(store, alice, name="Two")

        response = test_client.get(f"{API}/playlists/user/{alice['id']}", params={"limit": 1})

        body = response.json()["data"]
        assert len(body["items"]) == 1
        assert body["pagination"]["totalResults"] == 2
        assert body["pagination"]["hasNextPage"] is True


class TestDiscoverAPI:
    def test_discover_channels(self, test_client: TestClient, store, alice, bob):
        seed_video(store, alice)
        store.seed(Collections.SUBSCRIPTIONS, [{"channel": alice["id"], "subscriber": bob["id"]}])

        response = test_client.get(f"{API}/discover/channels", headers=viewer(bob))

        top = response.json()["data"]["items"][0]
        assert top["username"] == "alice"
        assert top["subscribersCount"] == 1
        assert top["videosCount"] == 1
        assert top["isSubscribed"] is True
        assert "email" not in top

    def test_discover_channels_search(self, test_client: TestClient, store):
        seed_user(store, "potter", fullname="Pottery Studio")
        seed_user(store, "runner", fullname="Trail Runner")

        response = test_client.get(f"{API}/discover/channels", params={"search": "pot", "sort": "bogus"})

        assert [c["username"] for c in response.json()["data"]["items"]] == ["potter"]

    def test_discover_videos(self, test_client: TestClient, store, alice):
        seed_video(store, alice, title="Quiet", views=1)
        seed_video(store, alice, title="Viral", views=1000)

        response = test_client.get(f"{API}/discover/videos")

        assert [v["title"] for v in response.json()["data"]["items"]] == ["Viral", "Quiet"]


class TestHealthAPI:
    def test_health(self, test_client: TestClient):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_readiness_reports_breaker_and_store(self, test_client: TestClient, store, alice):
        response = test_client.get("/health/ready")

        body = response.json()
        assert body["status"] == "ready"
        assert body["circuit_breaker"]["name"] == "object_storage"
        assert body["circuit_breaker"]["state"] == CircuitState.CLOSED.value
        assert body["entity_store"]["collections"]["users"] == 1

    def test_cors_preflight(self, test_client: TestClient):
        response = test_client.options(
            f"{API}/videos",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_request_id_echoed(self, test_client: TestClient):
        supplied = test_client.get("/health", headers={"X-Request-ID": "abc-123"})
        generated = test_client.get("/health")

        assert supplied.headers["X-Request-ID"] == "abc-123"
        assert len(generated.headers["X-Request-ID"]) == 32
