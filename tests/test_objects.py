import pytest

from threadfed import db
from threadfed.activitypub.exceptions import ValidationFailure, NotPermitted
from threadfed.activitypub.objects.post import find_community_reference, link_from_attachment
from threadfed.activitypub.types import ResolutionBudget, ExactSource, DerivedOnly
from threadfed.constants import AP_PUBLIC
from threadfed.models import Post


def budget():
    return ResolutionBudget(25)


class TestPerson:

    def test_from_wire(self, federation, asset):
        alice = federation.people.from_wire(asset('lemmy/person.json'), 'lemmy.world', budget())

        assert alice.user_name == 'alice'
        assert alice.title == 'Alice'
        assert alice.about == 'I post about **bikes**'
        assert '<strong>bikes</strong>' in alice.about_html
        assert alice.ap_inbox_url == 'https://lemmy.world/u/alice/inbox'
        assert alice.public_key.startswith('-----BEGIN PUBLIC KEY-----')
        assert not alice.bot

    def test_bot(self, federation, asset):
        person = asset('lemmy/person.json')
        person['type'] = 'Service'

        assert federation.people.from_wire(person, 'lemmy.world', budget()).bot

    def test_to_wire(self, federation, local_thread):
        wire = federation.people.to_wire(local_thread.author)

        assert wire['id'] == 'https://test.localhost/u/dave'
        assert wire['type'] == 'Person'
        assert wire['preferredUsername'] == 'dave'
        assert 'source' not in wire

    def test_long_names_are_cut_to_fit(self, federation, asset):
        person = asset('lemmy/person.json')
        person['preferredUsername'] = 'a' * 300
        person['name'] = 'b' * 300

        alice = federation.people.from_wire(person, 'lemmy.world', budget())

        assert alice.user_name == 'a' * 255
        assert alice.title == 'b' * 255

    def test_wrong_domain(self, federation, asset):
        with pytest.raises(ValidationFailure):
            federation.people.from_wire(asset('lemmy/person.json'), 'pleroma.example', budget())


class TestCommunity:

    def test_from_wire(self, federation, asset):
        group = asset('lemmy/group.json')
        group['postingRestrictedToMods'] = True
        group['sensitive'] = True

        community = federation.communities.from_wire(group, 'lemmy.world', budget())

        assert community.name == 'technology'
        assert community.title == 'Technology'
        assert community.restricted_to_mods
        assert community.nsfw
        assert community.ap_moderators_url == 'https://lemmy.world/c/technology/moderators'

    def test_long_names_are_cut_to_fit(self, federation, asset):
        group = asset('lemmy/group.json')
        group['preferredUsername'] = 'c' * 300
        group['name'] = None

        community = federation.communities.from_wire(group, 'lemmy.world', budget())

        assert community.name == 'c' * 255
        assert community.title == 'c' * 255

    def test_to_wire(self, federation, local_thread):
        local_thread.community.description = 'Tools and *techniques*'
        wire = federation.communities.to_wire(local_thread.community)

        assert wire['type'] == 'Group'
        assert wire['postingRestrictedToMods'] is False
        assert wire['source'] == {'content': 'Tools and *techniques*', 'mediaType': 'text/markdown'}


class TestPost:

    def test_from_wire(self, federation, transport, asset):
        transport.add(asset('lemmy/person.json'), asset('lemmy/group.json'))

        post = federation.posts.from_wire(asset('lemmy/page.json'), 'lemmy.world', budget())

        assert post.title == 'Show us your workbench'
        assert post.body == 'Mine is a *mess*'
        assert post.url == 'https://example.org/workbench.jpg'
        assert post.comments_enabled
        assert post.community.ap_id == 'https://lemmy.world/c/technology'

    def test_locked_post(self, federation, transport, asset):
        transport.add(asset('lemmy/person.json'), asset('lemmy/group.json'))
        page = asset('lemmy/page.json')
        page['commentsEnabled'] = False

        assert federation.posts.from_wire(page, 'lemmy.world', budget()).is_locked

    def test_microblog_post_takes_its_title_from_the_body(self, federation, transport, asset):
        transport.add(asset('lemmy/person.json'), asset('lemmy/group.json'))
        page = asset('lemmy/page.json')
        page['type'] = 'Article'
        del page['name']

        post = federation.posts.from_wire(page, 'lemmy.world', budget())

        assert post.title == 'Mine is a *mess*'

    def test_no_community(self, federation, transport, asset):
        transport.add(asset('lemmy/person.json'))
        page = asset('lemmy/page.json')
        page['to'] = [AP_PUBLIC]
        del page['audience']

        with pytest.raises(ValidationFailure):
            federation.posts.from_wire(page, 'lemmy.world', budget())

    def test_attributed_to_someone_on_another_server(self, federation, remote_thread, asset):
        page = asset('lemmy/page.json')
        page['id'] = 'https://evil.example/post/1'

        with pytest.raises(ValidationFailure):
            federation.posts.from_wire(page, 'evil.example', budget())
        assert db.session.query(Post).count() == 1

    def test_restricted_community(self, federation, transport, asset):
        group = asset('lemmy/group.json')
        group['postingRestrictedToMods'] = True
        transport.add(asset('lemmy/person.json'), group)

        with pytest.raises(NotPermitted):
            federation.posts.from_wire(asset('lemmy/page.json'), 'lemmy.world', budget())

    def test_tombstone(self, federation, remote_thread):
        post = federation.posts.from_wire({'id': 'https://lemmy.world/post/10', 'type': 'Tombstone'}, 'lemmy.world',
                                          budget())

        assert post.deleted
        assert db.session.query(Post).count() == 1

    def test_to_wire(self, federation, local_thread):
        wire = federation.posts.to_wire(local_thread.post)

        assert wire['type'] == 'Page'
        assert wire['name'] == 'Bench vices'
        assert wire['audience'] == 'https://test.localhost/c/workshop'
        assert wire['source'] == {'content': 'Which one do you use?', 'mediaType': 'text/markdown'}


class TestCommunityReference:

    def test_audience_wins(self):
        page = {'audience': 'https://a.example/c/one', 'to': ['https://b.example/c/two']}
        assert find_community_reference(page) == 'https://a.example/c/one'

    def test_skips_public_and_followers(self):
        page = {'to': [AP_PUBLIC, 'https://a.example/u/bob/followers'], 'cc': 'https://a.example/c/one'}
        assert find_community_reference(page) == 'https://a.example/c/one'

    def test_nothing(self):
        assert find_community_reference({'to': [AP_PUBLIC]}) is None

    def test_link_from_attachment(self):
        assert link_from_attachment([{'type': 'Link', 'href': 'https://x.example'}]) == 'https://x.example'
        assert link_from_attachment({'type': 'Link', 'url': 'https://y.example'}) == 'https://y.example'
        assert link_from_attachment([{'type': 'Image', 'url': 'https://z.example/a.png'}]) is None
        assert link_from_attachment(None) is None


class TestSource:

    def test_body_from_markdown_source(self, federation):
        body, source = federation.comments.body_from_object(
            {'content': '<p>x</p>', 'source': {'content': 'x', 'mediaType': 'text/markdown'}})
        assert body == 'x'
        assert source == ExactSource('x')

    def test_markdown_content(self, federation):
        body, source = federation.comments.body_from_object({'content': '*x*', 'mediaType': 'text/markdown'})
        assert body == '*x*'
        assert isinstance(source, ExactSource)

    def test_html_only(self, federation):
        body, source = federation.comments.body_from_object({'content': '<p><em>x</em></p>'})
        assert body == '*x*'
        assert source == DerivedOnly()
