import os

import pytest
from bson import ObjectId

import content
import relations
from errors import BadRequest, Forbidden, NotFound
from permissions import actor_owns


def test_actor_owns():
    owner = ObjectId()
    entity = {"_id": ObjectId(), "owner": owner}
    assert actor_owns(entity, owner) is True
    assert actor_owns(entity, str(owner)) is True
    assert actor_owns(entity, ObjectId()) is False
    assert actor_owns(entity, None) is False
    assert actor_owns(None, owner) is False


def test_update_comment_by_owner(db, make_user, make_video, make_comment):
    alice = make_user("alice")
    comment = make_comment(make_video(alice), alice, "before")

    updated = content.update_comment(db, comment["_id"], alice["_id"], "  after  ")

    assert updated.content == "after"
    assert updated.id == str(comment["_id"])


def test_non_owner_cannot_mutate(db, make_user, make_video, make_comment, make_tweet):
    alice = make_user("alice")
    mallory = make_user("mallory")
    video = make_video(alice, "mine")
    comment = make_comment(video, alice, "original")
    tweet = make_tweet(alice, "original tweet")
    playlist = content.create_playlist(db, alice["_id"], "Mix", "Songs")
    playlist_id = ObjectId(playlist.id)

    with pytest.raises(Forbidden):
        content.update_comment(db, comment["_id"], mallory["_id"], "hacked")
    with pytest.raises(Forbidden):
        content.delete_comment(db, comment["_id"], mallory["_id"])
    with pytest.raises(Forbidden):
        content.update_tweet(db, tweet["_id"], mallory["_id"], "hacked")
    with pytest.raises(Forbidden):
        content.delete_tweet(db, tweet["_id"], mallory["_id"])
    with pytest.raises(Forbidden):
        content.update_playlist(db, playlist_id, mallory["_id"], "hacked", "hacked")
    with pytest.raises(Forbidden):
        content.delete_playlist(db, playlist_id, mallory["_id"])
    with pytest.raises(Forbidden):
        content.update_video(db, video["_id"], mallory["_id"], "hacked", "hacked")
    with pytest.raises(Forbidden):
        content.toggle_publish_status(db, video["_id"], mallory["_id"])
    with pytest.raises(Forbidden):
        content.delete_video(db, video["_id"], mallory["_id"])

    assert db["comment"].find_one({"_id": comment["_id"]})["content"] == "original"
    assert db["tweet"].find_one({"_id": tweet["_id"]})["content"] == "original tweet"
    assert db["playlist"].find_one({"_id": playlist_id})["name"] == "Mix"
    stored_video = db["video"].find_one({"_id": video["_id"]})
    assert stored_video["title"] == "mine"
    assert stored_video["is_published"] is True


def test_mutating_missing_entities(db, make_user):
    alice = make_user("alice")
    with pytest.raises(NotFound):
        content.update_comment(db, ObjectId(), alice["_id"], "text")
    with pytest.raises(NotFound):
        content.delete_tweet(db, ObjectId(), alice["_id"])
    with pytest.raises(NotFound):
        content.delete_video(db, ObjectId(), alice["_id"])


def test_blank_content_is_rejected(db, make_user, make_video):
    alice = make_user("alice")
    video = make_video(alice)
    with pytest.raises(BadRequest):
        content.create_comment(db, video["_id"], alice["_id"], "   ")
    with pytest.raises(BadRequest):
        content.create_tweet(db, alice["_id"], None)
    with pytest.raises(BadRequest):
        content.create_playlist(db, alice["_id"], "Name", "")


def test_comment_on_missing_video(db, make_user):
    alice = make_user("alice")
    with pytest.raises(NotFound):
        content.create_comment(db, ObjectId(), alice["_id"], "hello")


def test_delete_comment_removes_its_likes(db, make_user, make_video, make_comment):
    alice = make_user("alice")
    bob = make_user("bob")
    video = make_video(alice)
    comment = make_comment(video, alice)
    relations.toggle_comment_like(db, comment["_id"], alice["_id"])
    relations.toggle_comment_like(db, comment["_id"], bob["_id"])

    content.delete_comment(db, comment["_id"], alice["_id"])

    assert db["comment"].count_documents({}) == 0
    assert db["like"].count_documents({"comment": comment["_id"]}) == 0


def test_delete_tweet_removes_its_likes(db, make_user, make_tweet):
    alice = make_user("alice")
    tweet = make_tweet(alice)
    relations.toggle_tweet_like(db, tweet["_id"], alice["_id"])

    content.delete_tweet(db, tweet["_id"], alice["_id"])

    assert db["tweet"].count_documents({}) == 0
    assert db["like"].count_documents({}) == 0


def test_delete_video_cascades(db, make_user, make_video, make_comment):
    alice = make_user("alice")
    bob = make_user("bob")
    video = make_video(alice, "doomed")
    survivor = make_video(alice, "survivor")
    comment = make_comment(video, bob)
    kept_comment = make_comment(survivor, bob)
    relations.toggle_video_like(db, video["_id"], bob["_id"])
    relations.toggle_video_like(db, survivor["_id"], bob["_id"])
    relations.toggle_comment_like(db, comment["_id"], alice["_id"])
    playlist = content.create_playlist(db, bob["_id"], "Faves", "Best ones")
    relations.add_video_to_playlist(db, ObjectId(playlist.id), video["_id"], bob["_id"])
    db["user"].update_one({"_id": bob["_id"]}, {"$addToSet": {"watch_history": video["_id"]}})

    content.delete_video(db, video["_id"], alice["_id"])

    assert db["video"].find_one({"_id": video["_id"]}) is None
    assert db["like"].count_documents({"video": video["_id"]}) == 0
    assert db["like"].count_documents({"comment": comment["_id"]}) == 0
    assert db["comment"].count_documents({"video": video["_id"]}) == 0
    assert db["playlist"].find_one({"_id": ObjectId(playlist.id)})["videos"] == []
    assert db["user"].find_one({"_id": bob["_id"]})["watch_history"] == []
    # unrelated rows survive
    assert db["like"].count_documents({"video": survivor["_id"]}) == 1
    assert db["comment"].find_one({"_id": kept_comment["_id"]}) is not None


def test_toggle_publish_status(db, make_user, make_video):
    alice = make_user("alice")
    video = make_video(alice, published=False)

    assert content.toggle_publish_status(db, video["_id"], alice["_id"]).is_published is True
    assert content.toggle_publish_status(db, video["_id"], alice["_id"]).is_published is False


def _temp_file(tmp_path, name, data=b"data"):
    path = tmp_path / name
    path.write_bytes(data)
    return str(path)


def test_publish_video_stores_media_as_draft(db, make_user, tmp_path, media_dir):
    alice = make_user("alice")
    video_path = _temp_file(tmp_path, "clip.mp4")
    thumb_path = _temp_file(tmp_path, "thumb.jpg")

    video = content.publish_video(db, alice["_id"], "Title", "Description", video_path, thumb_path)

    assert video.is_published is False
    assert video.owner.id == str(alice["_id"])
    assert video.video_url.startswith("/media/video/")
    stored = db["video"].find_one({"_id": ObjectId(video.id)})
    assert (media_dir / stored["video_file"]["public_id"]).exists()
    assert (media_dir / stored["thumbnail"]["public_id"]).exists()
    assert not os.path.exists(video_path)
    assert not os.path.exists(thumb_path)


def test_publish_video_requires_thumbnail(db, make_user, tmp_path):
    alice = make_user("alice")
    video_path = _temp_file(tmp_path, "clip.mp4")

    with pytest.raises(BadRequest):
        content.publish_video(db, alice["_id"], "Title", "Description", video_path, None)

    assert not os.path.exists(video_path)
    assert db["video"].count_documents({}) == 0


def test_update_video_replaces_thumbnail(db, make_user, tmp_path, media_dir):
    alice = make_user("alice")
    video = content.publish_video(
        db, alice["_id"], "Title", "Description",
        _temp_file(tmp_path, "clip.mp4"), _temp_file(tmp_path, "thumb.jpg"),
    )
    video_id = ObjectId(video.id)
    old_thumbnail = db["video"].find_one({"_id": video_id})["thumbnail"]["public_id"]

    updated = content.update_video(
        db, video_id, alice["_id"], "New title", "New description",
        _temp_file(tmp_path, "new_thumb.png"),
    )

    new_thumbnail = db["video"].find_one({"_id": video_id})["thumbnail"]["public_id"]
    assert updated.title == "New title"
    assert updated.thumbnail_url == f"/media/{new_thumbnail}"
    assert new_thumbnail != old_thumbnail
    assert (media_dir / new_thumbnail).exists()
    assert not (media_dir / old_thumbnail).exists()
