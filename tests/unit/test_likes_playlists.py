"""
Unit tests for LikeService and PlaylistService.
"""
import pytest

from conftest import at, seed_playlist, seed_video
from videovault.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from videovault.core.identifiers import new_id
from videovault.models.schemas import Collections, LikeTarget, PlaylistCreate, PlaylistUpdate
from videovault.pipeline.pagination import PageRequest


class TestToggleLike:
    @pytest.mark.asyncio
    async def test_toggle_twice_restores_state(self, like_service, store, alice, bob):
        video = seed_video(store, alice)

        liked = await like_service.toggle_like(LikeTarget.VIDEO, video["id"], bob["id"])
        unliked = await like_service.toggle_like(LikeTarget.VIDEO, video["id"], bob["id"])

        assert liked.is_liked is True
        assert unliked.is_liked is False
        assert await store.count(Collections.LIKES) == 0

    @pytest.mark.asyncio
    async def test_comment_and_tweet_targets(self, like_service, store, alice, bob):
        video = seed_video(store, alice)
        comment = store.seed(Collections.COMMENTS, [
            {"video": video["id"], "owner": bob["id"], "content": "first"},
        ])[0]
        tweet = store.seed(Collections.TWEETS, [{"owner": bob["id"], "content": "hello"}])[0]

        await like_service.toggle_like(LikeTarget.COMMENT, comment["id"], alice["id"])
        await like_service.toggle_like(LikeTarget.TWEET, tweet["id"], alice["id"])

        likes = await store.collection(Collections.LIKES).find({"liked_by": alice["id"]})
        assert {(like["comment"], like["tweet"]) for like in likes} == {
            (comment["id"], None),
            (None, tweet["id"]),
        }

    @pytest.mark.asyncio
    async def test_missing_target(self, like_service, bob):
        with pytest.raises(NotFoundError):
            await like_service.toggle_like(LikeTarget.TWEET, new_id(), bob["id"])

    @pytest.mark.asyncio
    async def test_draft_of_other_user_cannot_be_liked(self, like_service, store, alice, bob):
        draft = seed_video(store, alice, is_published=False)

        with pytest.raises(NotFoundError):
            await like_service.toggle_like(LikeTarget.VIDEO, draft["id"], bob["id"])

        own = await like_service.toggle_like(LikeTarget.VIDEO, draft["id"], alice["id"])
        assert own.is_liked is True

    @pytest.mark.asyncio
    async def test_malformed_target_id(self, like_service, bob):
        with pytest.raises(ValidationError) as exc_info:
            await like_service.toggle_like(LikeTarget.COMMENT, "123", bob["id"])
        assert exc_info.value.message == "Invalid commentId format"


class TestLikedVideos:
    @pytest.mark.asyncio
    async def test_most_recent_like_first(self, like_service, store, alice, bob):
        first = seed_video(store, alice, title="First")
        second = seed_video(store, alice, title="Second")
        store.seed(Collections.LIKES, [
            {"video": first["id"], "liked_by": bob["id"], "created_at": at(1)},
            {"video": second["id"], "liked_by": bob["id"], "created_at": at(2)},
            {"video": first["id"], "liked_by": alice["id"], "created_at": at(3)},
        ])

        page = await like_service.get_liked_videos(bob["id"], PageRequest())

        assert [item.video.title for item in page.items] == ["Second", "First"]
        assert page.items[0].liked_at == at(2)
        assert page.items[1].video.likes_count == 2
        assert page.items[1].video.is_liked is True
        assert page.pagination.total_results == 2

    @pytest.mark.asyncio
    async def test_unpublished_videos_excluded_from_count(self, like_service, store, alice, bob):
        live = seed_video(store, alice, title="Live")
        hidden = seed_video(store, alice, title="Hidden", is_published=False)
        store.seed(Collections.LIKES, [
            {"video": live["id"], "liked_by": bob["id"]},
            {"video": hidden["id"], "liked_by": bob["id"]},
        ])

        page = await like_service.get_liked_videos(bob["id"], PageRequest())

        assert [item.video.title for item in page.items] == ["Live"]
        assert page.pagination.total_results == 1

    @pytest.mark.asyncio
    async def test_paging_past_hidden_likes(self, like_service, store, alice, bob):
        live = seed_video(store, alice, title="Live")
        drafts = [seed_video(store, alice, title=f"Draft {n}", is_published=False) for n in range(2)]
        store.seed(Collections.LIKES, [
            {"video": video["id"], "liked_by": bob["id"]} for video in [live, *drafts]
        ])

        first = await like_service.get_liked_videos(bob["id"], PageRequest(page=1, limit=1))
        second = await like_service.get_liked_videos(bob["id"], PageRequest(page=2, limit=1))

        assert [item.video.title for item in first.items] == ["Live"]
        assert first.pagination.total_results == 1
        assert first.pagination.total_pages == 1
        assert first.pagination.has_next_page is False
        assert second.items == []
        assert second.pagination.has_next_page is False

    @pytest.mark.asyncio
    async def test_drafts_stay_listed_for_their_owner(self, like_service, store, alice):
        draft = seed_video(store, alice, title="Mine", is_published=False)
        store.seed(Collections.LIKES, [{"video": draft["id"], "liked_by": alice["id"]}])

        page = await like_service.get_liked_videos(alice["id"], PageRequest(page=1, limit=1))

        assert [item.video.title for item in page.items] == ["Mine"]
        assert page.pagination.total_results == 1

    @pytest.mark.asyncio
    async def test_comment_likes_are_not_listed(self, like_service, store, bob):
        store.seed(Collections.LIKES, [{"comment": new_id(), "liked_by": bob["id"]}])

        page = await like_service.get_liked_videos(bob["id"], PageRequest())

        assert page.items == []
        assert page.pagination.total_results == 0


class TestPlaylists:
    @pytest.mark.asyncio
    async def test_create_and_read(self, playlist_service, alice):
        created = await playlist_service.create_playlist(
            alice["id"], PlaylistCreate(name="Bread", description="Loaves")
        )

        view = await playlist_service.get_playlist(created.id)

        assert view.name == "Bread"
        assert view.owner.username == "alice"
        assert view.videos == []
        assert view.total_videos == 0

    @pytest.mark.asyncio
    async def test_add_is_set_like_and_keeps_order(self, playlist_service, store, alice):
        playlist = seed_playlist(store, alice)
        first = seed_video(store, alice, title="One", views=3)
        second = seed_video(store, alice, title="Two", views=4)

        await playlist_service.add_video(playlist["id"], second["id"], alice["id"])
        await playlist_service.add_video(playlist["id"], first["id"], alice["id"])
        updated = await playlist_service.add_video(playlist["id"], second["id"], alice["id"])

        assert updated.videos == [second["id"], first["id"]]
        view = await playlist_service.get_playlist(playlist["id"])
        assert [v.title for v in view.videos] == ["Two", "One"]
        assert view.total_videos == 2
        assert view.total_views == 7

    @pytest.mark.asyncio
    async def test_remove_absent_video_is_noop(self, playlist_service, store, alice):
        video = seed_video(store, alice)
        playlist = seed_playlist(store, alice, videos=[video["id"]])

        updated = await playlist_service.remove_video(playlist["id"], new_id(), alice["id"])
        removed = await playlist_service.remove_video(playlist["id"], video["id"], alice["id"])

        assert updated.videos == [video["id"]]
        assert removed.videos == []

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(self, playlist_service, store, alice, bob):
        playlist = seed_playlist(store, alice)
        video = seed_video(store, bob)

        with pytest.raises(ForbiddenError):
            await playlist_service.add_video(playlist["id"], video["id"], bob["id"])
        with pytest.raises(ForbiddenError):
            await playlist_service.update_playlist(
                playlist["id"], bob["id"], PlaylistUpdate(name="x", description="y")
            )

    @pytest.mark.asyncio
    async def test_cannot_add_others_draft(self, playlist_service, store, alice, bob):
        playlist = seed_playlist(store, alice)
        draft = seed_video(store, bob, is_published=False)

        with pytest.raises(NotFoundError):
            await playlist_service.add_video(playlist["id"], draft["id"], alice["id"])

    @pytest.mark.asyncio
    async def test_drafts_hidden_in_playlist_view(self, playlist_service, store, alice, bob):
        live = seed_video(store, bob, title="Live")
        draft = seed_video(store, bob, title="Draft", is_published=False)
        playlist = seed_playlist(store, alice, videos=[draft["id"], live["id"]])

        as_alice = await playlist_service.get_playlist(playlist["id"], alice["id"])
        as_bob = await playlist_service.get_playlist(playlist["id"], bob["id"])

        assert [v.title for v in as_alice.videos] == ["Live"]
        assert [v.title for v in as_bob.videos] == ["Draft", "Live"]

    @pytest.mark.asyncio
    async def test_user_playlists_most_recently_updated_first(self, playlist_service, store, alice, bob):
        seed_playlist(store, alice, name="Older", updated_at=at(1))
        seed_playlist(store, alice, name="Newer", updated_at=at(2))
        seed_playlist(store, bob, name="Not mine")

        page = await playlist_service.get_user_playlists(alice["id"], PageRequest())

        assert [p.name for p in page.items] == ["Newer", "Older"]
        assert page.pagination.total_results == 2

    @pytest.mark.asyncio
    async def test_update_and_delete(self, playlist_service, store, alice):
        playlist = seed_playlist(store, alice)

        updated = await playlist_service.update_playlist(
            playlist["id"], alice["id"], PlaylistUpdate(name="Renamed", description="New")
        )
        await playlist_service.delete_playlist(playlist["id"], alice["id"])

        assert updated.name == "Renamed"
        with pytest.raises(NotFoundError):
            await playlist_service.get_playlist(playlist["id"])

    @pytest.mark.asyncio
    async def test_owner_missing_from_store(self, playlist_service, store):
        playlist = seed_playlist(store, {"id": new_id()})

        view = await playlist_service.get_playlist(playlist["id"])

        assert view.owner is None
