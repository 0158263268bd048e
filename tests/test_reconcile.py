"""
Vote Reconciler Tests

First-occurrence-wins dedup, precedence and idempotence.
"""

from votes.contracts import Vote, Variant, vote_key
from votes.reconcile import SourceKind, merge, merge_by_kind, reconcile


def make_vote(choice, second, variant=Variant.NEUTRAL, user_agent=""):
    return Vote(variant, choice, f"2024-03-01T09:15:{second:02d}.000Z", user_agent)


class TestReconcile:

    def test_no_sources_yields_empty(self):
        assert reconcile() == ()
        assert reconcile([], []) == ()

    def test_disjoint_sources_are_concatenated(self):
        a = [make_vote("politics", 1), make_vote("education", 2)]
        b = [make_vote("creativity", 3, Variant.NUDGED)]
        assert reconcile(a, b) == tuple(a + b)

    def test_duplicate_across_sources_keeps_first_origin(self):
        a = [make_vote("politics", 1, user_agent="A"), make_vote("education", 2)]
        b = [make_vote("politics", 1, user_agent="B"), make_vote("defenses", 3)]

        merged = reconcile(a, b)

        assert len(merged) == len(a) + len(b) - 1
        survivor = [v for v in merged if vote_key(v) == vote_key(a[0])]
        assert survivor == [a[0]]
        assert survivor[0].user_agent == "A"

    def test_precedence_follows_caller_order(self):
        a = [make_vote("politics", 1, user_agent="A")]
        b = [make_vote("politics", 1, user_agent="B")]
        assert reconcile(b, a)[0].user_agent == "B"

    def test_duplicates_within_one_source(self):
        vote = make_vote("politics", 1)
        assert reconcile([vote, vote, vote]) == (vote,)

    def test_same_choice_and_time_different_variant_are_distinct(self):
        a = make_vote("politics", 1, Variant.NEUTRAL)
        b = make_vote("politics", 1, Variant.NUDGED)
        assert len(reconcile([a], [b])) == 2

    def test_merge_with_self_is_noop(self):
        merged = reconcile([make_vote("politics", 1), make_vote("education", 2)])
        assert reconcile(merged, merged) == merged

    def test_accepts_generators(self):
        votes = [make_vote("politics", i) for i in range(5)]
        merged = reconcile(v for v in votes)
        assert merged == tuple(votes)


class TestMergeReport:

    def test_report_accounts_for_every_vote(self):
        a = [make_vote("politics", 1, user_agent="A"), make_vote("politics", 1, user_agent="A")]
        b = [make_vote("politics", 1, user_agent="B")]

        report = merge([a, b])

        assert report.processed_count == 3
        assert report.unique_count == 1
        assert report.duplicate_count == 2
        assert [d.origin_differs for d in report.duplicates] == [False, True]
        assert all(d.kept is a[0] for d in report.duplicates)
        assert report.to_dict() == {
            'processed_count': 3,
            'unique_count': 1,
            'duplicate_count': 2
        }


class TestMergeByKind:

    def test_remote_wins_over_resident_regardless_of_mapping_order(self):
        resident = [make_vote("politics", 1, user_agent="local")]
        remote = [make_vote("politics", 1, user_agent="remote")]

        report = merge_by_kind({SourceKind.RESIDENT: resident, SourceKind.REMOTE: remote})

        assert report.votes == tuple(remote)

    def test_resident_wins_over_imported(self):
        resident = [make_vote("politics", 1, user_agent="local")]
        imported = [make_vote("politics", 1, user_agent="file"), make_vote("education", 2)]

        report = merge_by_kind({SourceKind.IMPORTED: imported, SourceKind.RESIDENT: resident})

        assert report.votes[0].user_agent == "local"
        assert report.unique_count == 2

    def test_kind_precedence_order(self):
        assert [k.name for k in sorted(SourceKind, key=lambda k: k.value)] == [
            "REMOTE", "RESIDENT", "IMPORTED"
        ]
