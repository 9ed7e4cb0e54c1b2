"""
AnnotationStore: additive appends, class dedup, ordering and read-back.
"""

import pytest

from waymark.metadata import AnnotationRecord, AnnotationStore, ClassIdentity


def show(self):
    pass


def create(self):
    pass


class Users:
    pass


class Posts:
    pass


USERS = ClassIdentity.of(Users)
POSTS = ClassIdentity.of(Posts)


class TestAppend:

    def test_class_records_accumulate_in_order(self, store):
        store.append(USERS, AnnotationRecord.plugin("users"))
        store.append(USERS, AnnotationRecord.controller("users"))
        store.append(USERS, AnnotationRecord.controller("v2"))

        records = store.class_records(USERS)
        assert [r.name for r in records] == ["Plugin", "Controller", "Controller"]
        assert records[2].value == "v2"

    def test_method_records_grouped_by_method(self, store):
        store.append(USERS, AnnotationRecord.route("GET", "/:id", show))
        store.append(USERS, AnnotationRecord.route("POST", "/", create))
        store.append(USERS, AnnotationRecord.template("show.html", show))

        groups = store.method_records(USERS)
        assert list(groups) == ["show", "create"]
        assert [r.name for r in groups["show"]] == ["GET", "Template"]
        assert [r.name for r in groups["create"]] == ["POST"]

    def test_identical_records_are_not_merged(self, store):
        rec = AnnotationRecord.middleware(1, show)
        store.append(USERS, rec)
        store.append(USERS, rec)
        assert len(store.method_records(USERS)["show"]) == 2
        assert store.record_count(USERS) == 2

    def test_kinds_do_not_mix(self, store):
        store.append(USERS, AnnotationRecord.controller())
        store.append(USERS, AnnotationRecord.route("GET", "/", show))
        assert len(store.class_records(USERS)) == 1
        assert len(store.method_records(USERS)) == 1


class TestKnownClasses:

    def test_dedup(self, store):
        store.append(USERS, AnnotationRecord.controller("users"))
        store.append(USERS, AnnotationRecord.route("GET", "/", show))
        assert list(store.known_classes()) == [USERS]
        assert len(store) == 1

    def test_first_registration_order(self, store):
        store.append(POSTS, AnnotationRecord.controller("posts"))
        store.append(USERS, AnnotationRecord.controller("users"))
        store.append(POSTS, AnnotationRecord.plugin("posts"))
        assert [i.key for i in store.known_classes()] == [POSTS.key, USERS.key]

    def test_iterator_is_single_use(self, store):
        store.append(USERS, AnnotationRecord.controller())
        it = store.known_classes()
        assert list(it) == [USERS]
        assert list(it) == []

    def test_same_key_other_factory_is_another_class(self, store):
        first = ClassIdentity("svc", factory=lambda: "first")
        second = ClassIdentity("svc", factory=lambda: "second")
        store.append(first, AnnotationRecord.plugin("a"))
        store.append(second, AnnotationRecord.plugin("b"))
        store.append(first, AnnotationRecord.controller())

        idents = list(store.known_classes())
        assert [i.key for i in idents] == ["svc", "svc#2"]
        assert [i.factory() for i in idents] == ["first", "second"]
        assert [r.name for r in store.class_records(first)] == ["Plugin", "Controller"]
        assert [r.value for r in store.class_records(second)] == ["b"]
        assert store.class_records("svc#2") == store.class_records(second)

    def test_equal_factory_is_the_same_class(self, store):
        store.append(ClassIdentity("users", factory=Users), AnnotationRecord.controller())
        store.append(ClassIdentity("users", factory=Users), AnnotationRecord.plugin("users"))
        assert len(store) == 1
        assert store.record_count("users") == 2

    def test_suffix_skips_taken_keys(self, store):
        store.append(ClassIdentity("svc#2", factory=Posts), AnnotationRecord.controller())
        store.append(ClassIdentity("svc", factory=Users), AnnotationRecord.controller())
        store.append(ClassIdentity("svc", factory=Posts), AnnotationRecord.controller())
        assert [i.key for i in store.known_classes()] == ["svc#2", "svc", "svc#3"]


class TestReadBack:

    def test_unknown_class_is_empty(self, store):
        assert store.class_records(USERS) == ()
        assert dict(store.method_records(USERS)) == {}
        assert USERS not in store

    def test_lookup_by_key(self, store):
        store.append(USERS, AnnotationRecord.controller())
        assert USERS.key in store
        assert store.class_records(USERS.key) == store.class_records(USERS)

    def test_method_records_are_read_only(self, store):
        store.append(USERS, AnnotationRecord.route("GET", "/", show))
        groups = store.method_records(USERS)
        with pytest.raises(TypeError):
            groups["other"] = ()
        assert isinstance(groups["show"], tuple)

    def test_record_count(self, store):
        store.append(USERS, AnnotationRecord.controller())
        store.append(USERS, AnnotationRecord.route("GET", "/", show))
        store.append(POSTS, AnnotationRecord.plugin("posts"))
        assert store.record_count() == 3
        assert store.record_count(POSTS) == 1
        assert store.record_count("missing") == 0
