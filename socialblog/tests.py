from datetime import timedelta
from unittest import mock

from django.db import DatabaseError, IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APITestCase

from socialblog.errors import Conflict, Forbidden, NotFound, StorageError, Unauthenticated
from socialblog.models import Blog, Comment, Notification, User
from socialblog.principal import Principal
from socialblog.repositories import BlogRepository, CommentRepository, NotificationRepository, UserRepository
from socialblog.services import (
    FOLLOW,
    FOLLOWING,
    OWN,
    REQUESTED,
    CommentThreadAssembler,
    EngagementService,
    FollowService,
    NotificationLedger,
    can_view,
    resolve_status,
    resolve_statuses,
)


def make_user(username, fullname=None, is_private=False):
    return User.objects.create_user(
        username=username,
        password="pass1234",
        fullname=fullname or username.title(),
        email=f"{username}@example.com",
        is_private=is_private,
    )


def principal(user):
    return Principal.from_user(user)


class PrincipalTests(TestCase):
    def test_anonymous_user_has_no_principal(self):
        from django.contrib.auth.models import AnonymousUser
        self.assertIsNone(Principal.from_user(AnonymousUser()))
        self.assertIsNone(Principal.from_user(None))

    def test_principal_falls_back_to_username(self):
        user = User.objects.create_user(username="nofullname", password="pass1234")
        self.assertEqual(Principal.from_user(user), Principal(id=user.pk, fullname="nofullname"))


# Visibility
class VisibilityTests(TestCase):
    def setUp(self):
        self.owner = make_user("owner", is_private=True)
        self.follower = make_user("follower")
        self.stranger = make_user("stranger")
        self.owner.followers.add(self.follower)

    def test_private_owner_hidden_from_anonymous_and_strangers(self):
        self.assertFalse(can_view(None, self.owner))
        self.assertFalse(can_view(principal(self.stranger), self.owner))

    def test_private_owner_visible_to_self_and_followers(self):
        self.assertTrue(can_view(principal(self.owner), self.owner))
        self.assertTrue(can_view(principal(self.follower), self.owner))

    def test_public_owner_visible_to_everyone(self):
        public = make_user("public")
        for viewer in (None, principal(self.stranger), principal(self.owner), principal(public)):
            self.assertTrue(can_view(viewer, public))

    def test_following_does_not_grant_reverse_access(self):
        # owner never followed follower back
        self.follower.is_private = True
        self.follower.save()
        self.assertFalse(can_view(principal(self.owner), self.follower))


# Follow state
class FollowStateTests(TestCase):
    def setUp(self):
        self.viewer = make_user("viewer")
        self.target = make_user("target", is_private=True)
        self.ledger = NotificationLedger(NotificationRepository())
        self.users = UserRepository()

    def status_for(self, viewer, target):
        return resolve_status(viewer, target, self.ledger, self.users)

    def _pending_request(self):
        return Notification.objects.create(
            sender=self.viewer,
            recipient=self.target,
            type=Notification.FOLLOW_REQUEST,
            status=Notification.PENDING,
            message="Viewer requested to follow you",
        )

    def test_anonymous_always_gets_follow(self):
        self._pending_request()
        self.assertEqual(self.status_for(None, self.target), FOLLOW)
        self.assertEqual(self.status_for(None, self.viewer), FOLLOW)

    def test_own_wins_over_following(self):
        # A self-follow row can only come from direct data manipulation.
        self.viewer.followers.add(self.viewer)
        self.assertEqual(self.status_for(principal(self.viewer), self.viewer), OWN)

    def test_pending_request_gives_requested(self):
        self._pending_request()
        self.assertEqual(self.status_for(principal(self.viewer), self.target), REQUESTED)

    def test_following_wins_over_stale_pending_request(self):
        self._pending_request()
        self.target.followers.add(self.viewer)
        self.assertEqual(self.status_for(principal(self.viewer), self.target), FOLLOWING)

    def test_answered_request_is_not_pending(self):
        request = self._pending_request()
        request.status = Notification.REJECTED
        request.save()
        self.assertEqual(self.status_for(principal(self.viewer), self.target), FOLLOW)

    def test_batched_statuses_match_single_lookups(self):
        followed = make_user("followed")
        followed.followers.add(self.viewer)
        stranger = make_user("stranger")
        self._pending_request()

        targets = [self.viewer, self.target, followed, stranger]
        batched = resolve_statuses(principal(self.viewer), targets, self.ledger, self.users)
        expected = {t.pk: self.status_for(principal(self.viewer), t) for t in targets}
        self.assertEqual(batched, expected)
        self.assertEqual(
            batched,
            {self.viewer.pk: OWN, self.target.pk: REQUESTED, followed.pk: FOLLOWING, stranger.pk: FOLLOW},
        )

    def test_batched_statuses_for_anonymous(self):
        batched = resolve_statuses(None, [self.viewer, self.target], self.ledger, self.users)
        self.assertEqual(batched, {self.viewer.pk: FOLLOW, self.target.pk: FOLLOW})


# Notification ledger
class NotificationLedgerTests(TestCase):
    def setUp(self):
        self.alice = make_user("alice")
        self.bob = make_user("bob")
        self.blog = Blog.objects.create(author=self.bob, title="Hello", body="World")
        self.ledger = NotificationLedger(NotificationRepository())

    def _like(self, sender=None, recipient=None):
        return self.ledger.record_interaction(
            (sender or self.alice).pk,
            (recipient or self.bob).pk,
            Notification.LIKE,
            blog_id=self.blog.pk,
            message="Alice liked your post: Hello",
        )

    def test_like_is_recorded_once(self):
        first = self._like()
        second = self._like()
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Notification.objects.filter(type=Notification.LIKE).count(), 1)
        self.assertEqual(first.status, Notification.UNREAD)

    def test_self_interaction_is_not_recorded(self):
        self.assertIsNone(self._like(sender=self.bob, recipient=self.bob))
        self.assertFalse(Notification.objects.exists())

    def test_self_interaction_never_touches_storage(self):
        repo = mock.Mock()
        result = NotificationLedger(repo).record_interaction(1, 1, Notification.COMMENT, blog_id=3)
        self.assertIsNone(result)
        self.assertEqual(repo.mock_calls, [])

    def test_reverse_deletes_the_matching_like(self):
        self._like()
        self.assertEqual(
            self.ledger.reverse_interaction(self.alice.pk, self.bob.pk, Notification.LIKE, self.blog.pk), 1
        )
        self.assertFalse(Notification.objects.exists())
        # no-op when absent
        self.assertEqual(
            self.ledger.reverse_interaction(self.alice.pk, self.bob.pk, Notification.LIKE, self.blog.pk), 0
        )

    def test_comments_are_not_deduplicated(self):
        for _ in range(2):
            self.ledger.record_interaction(
                self.alice.pk, self.bob.pk, Notification.COMMENT, blog_id=self.blog.pk, content="nice"
            )
        self.assertEqual(Notification.objects.filter(type=Notification.COMMENT).count(), 2)

    def test_follow_request_pending_lookup(self):
        self.assertFalse(self.ledger.has_pending(self.alice.pk, self.bob.pk))
        request = self.ledger.record_interaction(self.alice.pk, self.bob.pk, Notification.FOLLOW_REQUEST)
        self.assertEqual(request.status, Notification.PENDING)
        again = self.ledger.record_interaction(self.alice.pk, self.bob.pk, Notification.FOLLOW_REQUEST)
        self.assertEqual(request.pk, again.pk)
        self.assertTrue(self.ledger.has_pending(self.alice.pk, self.bob.pk))
        self.assertFalse(self.ledger.has_pending(self.bob.pk, self.alice.pk))

    def test_purge_blog_removes_every_reference(self):
        self._like()
        carol = make_user("carol")
        self.ledger.record_interaction(carol.pk, self.bob.pk, Notification.COMMENT, blog_id=self.blog.pk)
        self.ledger.record_interaction(carol.pk, self.bob.pk, Notification.FOLLOW)
        self.assertEqual(self.ledger.purge_blog(self.blog.pk), 2)
        self.assertEqual(list(Notification.objects.values_list("type", flat=True)), [Notification.FOLLOW])

    def test_database_rejects_self_addressed_notification(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Notification.objects.create(
                    sender=self.bob, recipient=self.bob, type=Notification.FOLLOW, status=Notification.UNREAD
                )

    def test_database_rejects_duplicate_like(self):
        self._like()
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Notification.objects.create(
                    sender=self.alice,
                    recipient=self.bob,
                    blog=self.blog,
                    type=Notification.LIKE,
                    status=Notification.READ,
                )

    def test_unread_count_ignores_follow_requests(self):
        self._like()
        self.ledger.record_interaction(self.alice.pk, self.bob.pk, Notification.FOLLOW_REQUEST)
        self.assertEqual(self.ledger.unread_count(self.bob.pk), 1)
        self.assertEqual(self.ledger.mark_read(self.bob.pk), 1)
        self.assertEqual(self.ledger.unread_count(self.bob.pk), 0)
        self.assertTrue(self.ledger.has_pending(self.alice.pk, self.bob.pk))


# Comment threads
class CommentThreadAssemblerTests(TestCase):
    def setUp(self):
        now = timezone.now()
        self.author = make_user("author")
        self.blog = Blog.objects.create(author=self.author, title="t", body="b")

        def comment(minutes_ago, parent=None):
            return Comment.objects.create(
                blog=self.blog,
                author=self.author,
                content=f"{minutes_ago}",
                parent=parent,
                created_at=now - timedelta(minutes=minutes_ago),
            )

        self.c2 = comment(10)
        self.c1 = comment(9)
        self.r1 = comment(8, parent=self.c1)
        self.r3 = comment(7, parent=self.c2)
        self.r2 = comment(6, parent=self.c1)
        self.assembler = CommentThreadAssembler(CommentRepository())

    def test_two_level_tree_newest_first(self):
        thread = self.assembler.assemble(self.blog.pk)
        self.assertEqual([node.comment for node in thread], [self.c1, self.c2])
        self.assertEqual(thread.nodes[0].replies, [self.r2, self.r1])
        self.assertEqual(thread.nodes[1].replies, [self.r3])
        self.assertEqual(thread.total_comments, 5)

    def test_reply_to_reply_is_flattened(self):
        nested = Comment.objects.create(blog=self.blog, author=self.author, content="deep", parent=self.r1)
        thread = self.assembler.assemble(self.blog.pk)
        self.assertEqual(len(thread), 2)
        self.assertIn(nested, thread.nodes[0].replies)
        self.assertEqual(thread.total_comments, 6)

    def test_blog_without_comments(self):
        other = Blog.objects.create(author=self.author, title="empty", body="b")
        threads = self.assembler.assemble_many([other.pk, self.blog.pk])
        self.assertEqual(threads[other.pk].total_comments, 0)
        self.assertEqual(threads[self.blog.pk].total_comments, 5)


# Engagement
class ToggleLikeTests(TestCase):
    def setUp(self):
        self.alice = make_user("alice", "Alice Liddell")
        self.bob = make_user("bob")
        self.blog = Blog.objects.create(author=self.bob, title="Hello", body="World")
        self.service = EngagementService()

    def test_like_unlike_like_round_trip(self):
        before_blog = set(self.blog.likes.values_list("pk", flat=True))
        before_user = set(self.alice.liked_blogs.values_list("pk", flat=True))

        self.assertTrue(self.service.toggle_like(principal(self.alice), self.blog.pk).liked)
        result = self.service.toggle_like(principal(self.alice), self.blog.pk)
        self.assertFalse(result.liked)
        self.assertEqual(result.likes_count, 0)
        self.assertEqual(set(self.blog.likes.values_list("pk", flat=True)), before_blog)
        self.assertEqual(set(self.alice.liked_blogs.values_list("pk", flat=True)), before_user)

        result = self.service.toggle_like(principal(self.alice), self.blog.pk)
        self.assertTrue(result.liked)
        self.assertEqual(result.likes_count, 1)
        self.assertIn(self.alice, self.blog.likes.all())
        self.assertIn(self.blog, self.alice.liked_blogs.all())

    def test_like_notification_follows_the_like(self):
        self.service.toggle_like(principal(self.alice), self.blog.pk)
        notification = Notification.objects.get(type=Notification.LIKE)
        self.assertEqual(notification.recipient, self.bob)
        self.assertEqual(notification.message, "Alice Liddell liked your post: Hello")

        self.service.toggle_like(principal(self.alice), self.blog.pk)
        self.assertFalse(Notification.objects.filter(type=Notification.LIKE).exists())

        self.service.toggle_like(principal(self.alice), self.blog.pk)
        self.assertEqual(Notification.objects.filter(type=Notification.LIKE).count(), 1)

    def test_owner_liking_own_blog_creates_no_notification(self):
        result = self.service.toggle_like(principal(self.bob), self.blog.pk)
        self.assertTrue(result.liked)
        self.assertFalse(Notification.objects.exists())

    def test_private_blog_cannot_be_liked_by_stranger(self):
        self.bob.is_private = True
        self.bob.save()
        with self.assertRaises(Forbidden):
            self.service.toggle_like(principal(self.alice), self.blog.pk)
        self.assertEqual(self.blog.likes.count(), 0)

    def test_anonymous_and_missing_blog(self):
        with self.assertRaises(Unauthenticated):
            self.service.toggle_like(None, self.blog.pk)
        with self.assertRaises(NotFound):
            self.service.toggle_like(principal(self.alice), self.blog.pk + 100)


class CommentTests(TestCase):
    def setUp(self):
        self.alice = make_user("alice", "Alice")
        self.bob = make_user("bob", "Bob")
        self.carol = make_user("carol", "Carol")
        self.blog = Blog.objects.create(author=self.bob, title="Hello", body="World")
        self.service = EngagementService()

    def test_comment_notifies_blog_owner(self):
        comment = self.service.post_comment(principal(self.alice), self.blog.pk, "Nice post")
        self.assertIsNone(comment.parent_id)
        notification = Notification.objects.get(type=Notification.COMMENT)
        self.assertEqual(notification.recipient, self.bob)
        self.assertEqual(notification.content, "Nice post")
        self.assertEqual(notification.message, 'Alice commented on your post "Hello"')

    def test_reply_notifies_parent_author(self):
        comment = self.service.post_comment(principal(self.alice), self.blog.pk, "Nice post")
        reply = self.service.post_reply(principal(self.carol), comment.pk, "Agreed")
        self.assertEqual(reply.parent_id, comment.pk)
        notification = Notification.objects.get(type=Notification.REPLY)
        self.assertEqual(notification.recipient, self.alice)
        self.assertEqual(notification.message, "Carol replied to your comment")

    def test_reply_to_reply_attaches_to_top_level_comment(self):
        comment = self.service.post_comment(principal(self.alice), self.blog.pk, "Nice post")
        reply = self.service.post_reply(principal(self.carol), comment.pk, "Agreed")
        nested = self.service.post_reply(principal(self.alice), reply.pk, "Thanks")
        self.assertEqual(nested.parent_id, comment.pk)
        # the author of the reply actually answered is notified
        self.assertEqual(Notification.objects.filter(type=Notification.REPLY, recipient=self.carol).count(), 1)

    def test_owner_commenting_creates_no_notification(self):
        self.service.post_comment(principal(self.bob), self.blog.pk, "First")
        self.assertFalse(Notification.objects.exists())

    def test_comment_on_private_blog_is_forbidden(self):
        self.bob.is_private = True
        self.bob.save()
        with self.assertRaises(Forbidden):
            self.service.post_comment(principal(self.alice), self.blog.pk, "Hi")
        self.bob.followers.add(self.alice)
        self.service.post_comment(principal(self.alice), self.blog.pk, "Hi")

    def test_only_author_deletes_comment(self):
        comment = self.service.post_comment(principal(self.alice), self.blog.pk, "Nice post")
        reply = self.service.post_reply(principal(self.carol), comment.pk, "Agreed")
        with self.assertRaises(Forbidden):
            self.service.delete_comment(principal(self.bob), comment.pk)

        self.service.delete_comment(principal(self.alice), comment.pk)
        self.assertFalse(Comment.objects.filter(pk__in=[comment.pk, reply.pk]).exists())
        # notifications that mention the comment stay
        self.assertEqual(Notification.objects.filter(type=Notification.COMMENT).count(), 1)
        self.assertEqual(Notification.objects.filter(type=Notification.REPLY).count(), 1)

    def test_comment_likes_conflict_on_repeat(self):
        comment = self.service.post_comment(principal(self.alice), self.blog.pk, "Nice post")
        self.assertEqual(self.service.like_comment(principal(self.bob), comment.pk), 1)
        with self.assertRaises(Conflict):
            self.service.like_comment(principal(self.bob), comment.pk)
        self.assertEqual(self.service.unlike_comment(principal(self.bob), comment.pk), 0)
        with self.assertRaises(Conflict):
            self.service.unlike_comment(principal(self.bob), comment.pk)


class BlogLifecycleTests(TestCase):
    def setUp(self):
        self.alice = make_user("alice")
        self.bob = make_user("bob")
        self.service = EngagementService()
        self.blog = self.service.create_blog(principal(self.bob), "Hello", "World")

    def test_delete_blog_cascades_comments_and_notifications(self):
        self.service.toggle_like(principal(self.alice), self.blog.pk)
        comment = self.service.post_comment(principal(self.alice), self.blog.pk, "Nice")
        self.service.post_reply(principal(self.bob), comment.pk, "Thanks")
        self.assertEqual(Notification.objects.filter(blog=self.blog).count(), 3)

        self.service.delete_blog(principal(self.bob), self.blog.pk)
        self.assertFalse(Blog.objects.filter(pk=self.blog.pk).exists())
        self.assertFalse(Comment.objects.exists())
        self.assertFalse(Notification.objects.exists())

    def test_only_owner_deletes_blog(self):
        with self.assertRaises(Forbidden):
            self.service.delete_blog(principal(self.alice), self.blog.pk)
        with self.assertRaises(Unauthenticated):
            self.service.delete_blog(None, self.blog.pk)
        self.assertTrue(Blog.objects.filter(pk=self.blog.pk).exists())


class FeedAndSearchTests(TestCase):
    def setUp(self):
        now = timezone.now()
        self.alice = make_user("alice", "Alice Liddell")
        self.bob = make_user("bob", "Bob Private", is_private=True)
        self.carol = make_user("carol", "Carol Public")
        self.bob.followers.add(self.carol)

        self.newest = Blog.objects.create(author=self.alice, title="newest", body="x", created_at=now)
        self.private = Blog.objects.create(
            author=self.bob, title="secret garden", body="x", created_at=now - timedelta(minutes=1)
        )
        self.older = Blog.objects.create(
            author=self.carol, title="garden notes", body="x", created_at=now - timedelta(minutes=2)
        )
        self.service = EngagementService()

    def test_anonymous_feed_excludes_private_owner(self):
        page = self.service.feed(None)
        self.assertEqual([card.blog for card in page.cards], [self.newest, self.older])
        self.assertEqual(page.count, 2)
        self.assertTrue(all(card.follow_status == FOLLOW for card in page.cards))

    def test_follower_feed_keeps_newest_first_order(self):
        page = self.service.feed(principal(self.carol))
        self.assertEqual([card.blog for card in page.cards], [self.newest, self.private, self.older])
        statuses = [card.follow_status for card in page.cards]
        self.assertEqual(statuses, [FOLLOW, FOLLOWING, OWN])
        self.assertTrue(page.cards[2].is_own)
        self.assertTrue(page.cards[1].is_following)

    def test_feed_pagination(self):
        page = self.service.feed(principal(self.carol), page=2, size=2)
        self.assertEqual([card.blog for card in page.cards], [self.older])
        self.assertEqual(page.count, 3)

    def test_feed_clamps_page_and_size(self):
        page = self.service.feed(principal(self.carol), page=0, size=-5)
        self.assertEqual((page.page, page.size, page.count), (1, 1, 3))
        self.assertEqual([card.blog for card in page.cards], [self.newest])

        page = self.service.feed(principal(self.carol), page=-3, size=0)
        self.assertEqual((page.page, page.size), (1, 20))
        self.assertEqual(len(page.cards), 3)

        page = self.service.feed(principal(self.carol), size=1000)
        self.assertEqual(page.size, 100)

    def test_feed_counts_each_blog_once(self):
        self.carol.followers.add(self.alice, self.bob)
        page = self.service.feed(principal(self.alice))
        self.assertEqual([card.blog for card in page.cards], [self.newest, self.older])
        self.assertEqual(page.count, 2)

    def test_likers_carry_their_own_follow_status(self):
        self.alice.followers.add(self.carol)
        self.older.likes.add(self.alice, self.bob)
        card = self.service.blog_detail(principal(self.carol), self.older.pk)
        labels = {liker.user.pk: liker.follow_status for liker in card.likers}
        self.assertEqual(labels, {self.alice.pk: FOLLOWING, self.bob.pk: FOLLOWING})
        self.assertEqual(card.likes_count, 2)

    def test_blog_detail_gates_private_content(self):
        with self.assertRaises(Forbidden):
            self.service.blog_detail(principal(self.alice), self.private.pk)
        with self.assertRaises(NotFound):
            self.service.blog_detail(None, 9999)

    def test_search_filters_private_blogs(self):
        results = self.service.search(None, "garden")
        self.assertEqual([card.blog for card in results.blogs], [self.older])
        results = self.service.search(principal(self.bob), "garden")
        self.assertEqual([card.blog for card in results.blogs], [self.private, self.older])

    def test_search_users_with_status(self):
        Notification.objects.create(
            sender=self.alice,
            recipient=self.bob,
            type=Notification.FOLLOW_REQUEST,
            status=Notification.PENDING,
        )
        results = self.service.search(principal(self.alice), "bob")
        self.assertEqual([r.user for r in results.users], [self.bob])
        self.assertEqual(results.users[0].follow_status, REQUESTED)

    def test_blank_search_returns_nothing(self):
        results = self.service.search(principal(self.alice), "   ")
        self.assertEqual(results.users, [])
        self.assertEqual(results.blogs, [])

    def test_profile_of_private_user(self):
        profile = self.service.profile(principal(self.alice), self.bob.pk)
        self.assertFalse(profile.can_view)
        self.assertEqual(profile.blogs, [])
        self.assertEqual((profile.followers_count, profile.following_count), (1, 0))

        profile = self.service.profile(principal(self.carol), self.bob.pk)
        self.assertTrue(profile.can_view)
        self.assertEqual([card.blog for card in profile.blogs], [self.private])

    def test_profile_common_followers(self):
        self.alice.followers.add(self.carol)
        profile = self.service.profile(principal(self.alice), self.bob.pk)
        self.assertEqual(profile.common_followers, [self.carol])


# Follows
class FollowServiceTests(TestCase):
    def setUp(self):
        self.alice = make_user("alice", "Alice")
        self.bob = make_user("bob", "Bob", is_private=True)
        self.carol = make_user("carol", "Carol")
        self.service = FollowService()

    def _status(self, viewer, target):
        target.refresh_from_db()
        return resolve_status(
            principal(viewer), target, NotificationLedger(NotificationRepository()), UserRepository()
        )

    def test_follow_public_user(self):
        self.assertEqual(self.service.follow(principal(self.alice), self.carol.pk), FOLLOWING)
        self.assertIn(self.alice, self.carol.followers.all())
        self.assertIn(self.carol, self.alice.following.all())
        notification = Notification.objects.get(type=Notification.FOLLOW)
        self.assertEqual(notification.message, "Alice started following you")
        with self.assertRaises(Conflict):
            self.service.follow(principal(self.alice), self.carol.pk)

    def test_follow_private_user_sends_one_request(self):
        self.assertEqual(self.service.follow(principal(self.alice), self.bob.pk), REQUESTED)
        self.assertEqual(self.service.follow(principal(self.alice), self.bob.pk), REQUESTED)
        self.assertEqual(Notification.objects.pending().count(), 1)
        self.assertEqual(self._status(self.alice, self.bob), REQUESTED)

    def test_accept_request(self):
        self.service.follow(principal(self.alice), self.bob.pk)
        request = Notification.objects.pending().get()
        answered = self.service.respond(principal(self.bob), request.pk, accept=True)
        self.assertEqual(answered.status, Notification.ACCEPTED)
        self.assertIn(self.alice, self.bob.followers.all())
        self.assertEqual(self._status(self.alice, self.bob), FOLLOWING)
        with self.assertRaises(Conflict):
            self.service.respond(principal(self.bob), request.pk, accept=False)

    def test_reject_request(self):
        self.service.follow(principal(self.alice), self.bob.pk)
        request = Notification.objects.pending().get()
        self.service.respond(principal(self.bob), request.pk, accept=False)
        request.refresh_from_db()
        self.assertEqual(request.status, Notification.REJECTED)
        self.assertEqual(self._status(self.alice, self.bob), FOLLOW)
        # a new request may be sent after a rejection
        self.assertEqual(self.service.follow(principal(self.alice), self.bob.pk), REQUESTED)

    def test_only_recipient_may_respond(self):
        self.service.follow(principal(self.alice), self.bob.pk)
        request = Notification.objects.pending().get()
        with self.assertRaises(Forbidden):
            self.service.respond(principal(self.carol), request.pk, accept=True)

    def test_unfollow_and_withdraw(self):
        self.service.follow(principal(self.alice), self.carol.pk)
        self.assertEqual(self.service.unfollow(principal(self.alice), self.carol.pk), FOLLOW)
        self.assertNotIn(self.alice, self.carol.followers.all())

        self.service.follow(principal(self.alice), self.bob.pk)
        self.assertEqual(self.service.unfollow(principal(self.alice), self.bob.pk), FOLLOW)
        self.assertFalse(Notification.objects.pending().exists())

        with self.assertRaises(Conflict):
            self.service.unfollow(principal(self.alice), self.bob.pk)

    def test_cannot_follow_self(self):
        with self.assertRaises(Conflict):
            self.service.follow(principal(self.alice), self.alice.pk)
        self.assertFalse(Notification.objects.exists())

    def test_going_public_clears_stale_request_on_follow(self):
        self.service.follow(principal(self.alice), self.bob.pk)
        self.service.set_privacy(principal(self.bob), False)
        self.assertEqual(self.service.follow(principal(self.alice), self.bob.pk), FOLLOWING)
        self.assertFalse(Notification.objects.pending().exists())

    def test_update_profile(self):
        user = self.service.update_profile(principal(self.alice), fullname="Alice L", bio="Writes things")
        self.assertEqual((user.fullname, user.bio), ("Alice L", "Writes things"))
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.email, "alice@example.com")

    def test_update_profile_rejects_taken_email(self):
        with self.assertRaises(Conflict):
            self.service.update_profile(principal(self.alice), email="BOB@example.com")
        self.service.update_profile(principal(self.alice), email="alice@example.com")

    def test_update_profile_needs_a_change(self):
        with self.assertRaises(ValidationError):
            self.service.update_profile(principal(self.alice), bio="")
        with self.assertRaises(Unauthenticated):
            self.service.update_profile(None, fullname="Nobody")


class StorageErrorTests(TestCase):
    def test_database_failure_becomes_storage_error(self):
        with mock.patch.object(BlogRepository, "_base", side_effect=DatabaseError("disk I/O error")):
            with self.assertRaises(StorageError):
                EngagementService().feed(None)


# API
class EngagementAPITests(APITestCase):
    def setUp(self):
        self.alice = make_user("alice", "Alice")
        self.bob = make_user("bob", "Bob", is_private=True)
        self.carol = make_user("carol", "Carol")
        self.public_blog = Blog.objects.create(author=self.carol, title="Public", body="hello")
        self.private_blog = Blog.objects.create(author=self.bob, title="Private", body="hidden")

    def test_anonymous_feed(self):
        resp = self.client.get("/api/feed/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["type"], "feed")
        self.assertEqual([card["id"] for card in resp.data["src"]], [self.public_blog.pk])
        self.assertEqual(resp.data["src"][0]["followStatus"], FOLLOW)

    def test_feed_with_bad_paging_params(self):
        newer = Blog.objects.create(author=self.carol, title="Newer", body="hello again")

        resp = self.client.get("/api/feed/", {"size": -5})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual((resp.data["size"], resp.data["count"]), (1, 2))
        self.assertEqual([card["id"] for card in resp.data["src"]], [newer.pk])

        resp = self.client.get("/api/feed/", {"size": -5, "page": 2})
        self.assertEqual([card["id"] for card in resp.data["src"]], [self.public_blog.pk])

        resp = self.client.get("/api/feed/", {"size": "abc", "page": 0})
        self.assertEqual((resp.data["page_number"], resp.data["size"]), (1, 20))
        self.assertEqual(len(resp.data["src"]), 2)

    def test_create_blog(self):
        self.client.force_authenticate(user=self.alice)
        resp = self.client.post("/api/blogs/", {"title": "New", "body": "text"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertTrue(resp.data["isOwn"])
        self.assertEqual(resp.data["author"]["id"], self.alice.pk)

        resp = self.client.post("/api/blogs/", {"title": "No body"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_like_requires_login(self):
        resp = self.client.post(f"/api/blogs/{self.public_blog.pk}/like/")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_toggle_like(self):
        self.client.force_authenticate(user=self.alice)
        url = f"/api/blogs/{self.public_blog.pk}/like/"
        resp = self.client.post(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, {"isLiked": True, "likesCount": 1})
        resp = self.client.post(url)
        self.assertEqual(resp.data, {"isLiked": False, "likesCount": 0})

    def test_private_blog_detail(self):
        self.client.force_authenticate(user=self.alice)
        resp = self.client.get(f"/api/blogs/{self.private_blog.pk}/")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        resp = self.client.get("/api/blogs/9999/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_comment_thread_and_reply(self):
        self.client.force_authenticate(user=self.alice)
        resp = self.client.post(
            f"/api/blogs/{self.public_blog.pk}/comments/", {"content": "First!"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        comment_id = resp.data["id"]

        self.client.force_authenticate(user=self.carol)
        resp = self.client.post(f"/api/comments/{comment_id}/replies/", {"content": "Thanks"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["parent"], comment_id)

        resp = self.client.get(f"/api/blogs/{self.public_blog.pk}/comments/")
        self.assertEqual(resp.data["count"], 2)
        self.assertEqual(resp.data["src"][0]["replies"][0]["content"], "Thanks")

        resp = self.client.get(f"/api/blogs/{self.public_blog.pk}/")
        self.assertEqual(resp.data["totalComments"], 2)

        resp = self.client.delete(f"/api/comments/{comment_id}/")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_comment_like_conflict(self):
        comment = Comment.objects.create(blog=self.public_blog, author=self.carol, content="hi")
        self.client.force_authenticate(user=self.alice)
        url = f"/api/comments/{comment.pk}/like/"
        self.assertEqual(self.client.post(url).data, {"likesCount": 1})
        self.assertEqual(self.client.post(url).status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(self.client.delete(url).data, {"likesCount": 0})

    def test_follow_request_flow(self):
        self.client.force_authenticate(user=self.alice)
        resp = self.client.post(f"/api/users/{self.bob.pk}/follow/")
        self.assertEqual(resp.data, {"followStatus": REQUESTED})

        self.client.force_authenticate(user=self.bob)
        resp = self.client.get("/api/notifications/")
        self.assertEqual(resp.data["unread"], 0)
        request_id = resp.data["items"][0]["id"]
        self.assertEqual(resp.data["items"][0]["type"], Notification.FOLLOW_REQUEST)

        resp = self.client.post(f"/api/notifications/{request_id}/respond/", {"accept": True}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], Notification.ACCEPTED)

        self.client.force_authenticate(user=self.alice)
        resp = self.client.get(f"/api/users/{self.bob.pk}/")
        self.assertEqual(resp.data["followStatus"], FOLLOWING)
        self.assertTrue(resp.data["canView"])
        self.assertEqual([blog["id"] for blog in resp.data["blogs"]], [self.private_blog.pk])

    def test_follow_self_conflict(self):
        self.client.force_authenticate(user=self.alice)
        resp = self.client.post(f"/api/users/{self.alice.pk}/follow/")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_notifications_mark_read(self):
        self.client.force_authenticate(user=self.alice)
        self.client.post(f"/api/blogs/{self.public_blog.pk}/like/")

        self.client.force_authenticate(user=self.carol)
        resp = self.client.get("/api/notifications/?unread=true")
        self.assertEqual(resp.data["unread"], 1)
        self.assertEqual(resp.data["items"][0]["message"], "Alice liked your post: Public")

        resp = self.client.post("/api/notifications/read/", {}, format="json")
        self.assertEqual(resp.data, {"updated": 1})
        resp = self.client.get("/api/notifications/?unread=true")
        self.assertEqual(resp.data["items"], [])

    def test_privacy_toggle(self):
        self.client.force_authenticate(user=self.carol)
        resp = self.client.patch("/api/settings/privacy/", {"isPrivate": True}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["isPrivate"])

        self.client.force_authenticate(user=None)
        resp = self.client.get("/api/feed/")
        self.assertEqual(resp.data["src"], [])

    def test_profile_settings(self):
        self.client.force_authenticate(user=self.alice)
        resp = self.client.patch(
            "/api/settings/profile/", {"fullname": "  Alice L  ", "bio": "Hi there"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual((resp.data["fullname"], resp.data["bio"]), ("Alice L", "Hi there"))

        resp = self.client.patch("/api/settings/profile/", {"fullname": "A"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        resp = self.client.patch("/api/settings/profile/", {"email": "not-an-email"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        resp = self.client.patch("/api/settings/profile/", {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        resp = self.client.patch("/api/settings/profile/", {"email": "carol@example.com"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

        self.client.force_authenticate(user=None)
        resp = self.client.patch("/api/settings/profile/", {"bio": "anon"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_search(self):
        resp = self.client.get("/api/search/", {"q": "private"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["blogs"], [])
        resp = self.client.get("/api/search/", {"q": "carol"})
        self.assertEqual([user["id"] for user in resp.data["users"]], [self.carol.pk])

    def test_storage_failure_returns_503(self):
        with mock.patch.object(BlogRepository, "_base", side_effect=DatabaseError("disk I/O error")):
            resp = self.client.get("/api/feed/")
        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
