import logging

import pytest
from polars.testing import assert_frame_equal

from taxonid.chooser import DeclineChooser, ScriptedChooser
from taxonid.exceptions import BatchResolutionError, MissingCredentialError
from taxonid.resolver import Resolver, exact_matches, filter_by_name
from taxonid.types.data_classes import MatchStatus
from taxonid.types.identifiers import EolIds

from conftest import FakeProvider, rec


class TestNameFilter:
    """Unit tests for the name-match helpers"""

    def test_filter_keeps_case_insensitive_substring_matches(self):
        hits = [rec(1, "Puma concolor"), rec(2, "PUMA CONCOLOR COUGUAR"), rec(3, "Felis catus")]
        assert [c.external_id for c in filter_by_name(hits, "puma concolor")] == ["1", "2"]

    def test_filter_treats_underscores_as_spaces(self):
        hits = [rec(1, "Quercus_douglasii"), rec(2, "Quercus_lobata")]
        assert [c.external_id for c in filter_by_name(hits, "Quercus douglasii")] == ["1"]

    def test_exact_matches_ignore_case(self):
        hits = [rec(1, "Malus domestica"), rec(2, "Malus domestica var. x")]
        assert [c.external_id for c in exact_matches(hits, "malus DOMESTICA")] == ["1"]


class TestResolveName:
    """Every terminal state of single-name resolution"""

    def test_ambiguous_without_ask(self, poa_provider, caplog):
        resolver = Resolver(poa_provider)
        with caplog.at_level(logging.WARNING, logger="taxonid"):
            result = resolver.resolve_name("Poa annua", ask=False)

        assert result.value is None
        assert result.match_status is MatchStatus.AMBIGUOUS_NO_ASK
        assert result.multiple_matches is True
        assert result.direct_match is False
        assert "More than one fake ID found for taxon 'Poa annua'" in caplog.text

    def test_row_selection_gives_direct_match(self, poa_provider):
        result = Resolver(poa_provider).resolve_name("Poa annua", ask=False, rows=1)

        assert result.value == "101"
        assert result.match_status is MatchStatus.FOUND
        assert result.direct_match is True
        # Counted before row selection
        assert result.multiple_matches is True
        assert result.uri == "https://fake.example/taxa/101"
        assert result.provider == "ITIS"

    def test_nonsense_name_is_not_found(self, poa_provider):
        result = Resolver(poa_provider).resolve_name("uaudnadndj", ask=False)

        assert result.value is None
        assert result.match_status is MatchStatus.NOT_FOUND
        assert result.multiple_matches is False
        assert result.direct_match is False

    def test_single_candidate_is_direct_match(self, poa_provider):
        result = Resolver(poa_provider).resolve_name("Chironomus riparius", ask=False)

        assert result.value == "201"
        assert result.direct_match is True
        assert result.multiple_matches is False

    def test_hits_not_matching_the_name_are_not_found(self, caplog):
        provider = FakeProvider(hits={"Pinus contorta": [rec(1, "Pinaceae"), rec(2, "Pinus")]})
        with caplog.at_level(logging.WARNING, logger="taxonid"):
            result = Resolver(provider).resolve_name("Pinus contorta", ask=False)

        assert result.match_status is MatchStatus.NOT_FOUND
        assert "Pinus contorta" in caplog.text
        assert "Did find: Pinaceae; Pinus" in caplog.text

    def test_row_selection_that_removes_everything_is_not_found(self, poa_provider):
        result = Resolver(poa_provider).resolve_name("Poa annua", ask=False, rows=[5, 6])
        assert result.match_status is MatchStatus.NOT_FOUND
        assert result.value is None

    def test_row_range_keeping_two_is_still_ambiguous(self, poa_provider):
        result = Resolver(poa_provider).resolve_name("Poa annua", ask=False, rows=range(1, 3))
        assert result.match_status is MatchStatus.AMBIGUOUS_NO_ASK

    def test_chooser_pick_is_found_but_not_direct(self, poa_provider):
        chooser = ScriptedChooser(answers=[2])
        result = Resolver(poa_provider, chooser=chooser).resolve_name("Poa annua", ask=True)

        assert result.value == "102"
        assert result.match_status is MatchStatus.FOUND
        assert result.direct_match is False
        assert result.multiple_matches is True
        assert result.provider == "COL"

    def test_chooser_receives_candidates_in_row_order(self, poa_provider):
        chooser = ScriptedChooser(answers=[1])
        Resolver(poa_provider, chooser=chooser).resolve_name("Poa annua", ask=True)

        name, table = chooser.calls[0]
        assert name == "Poa annua"
        assert table.columns == ["id", "name", "source"]
        assert table["id"].to_list() == ["101", "102"]

    def test_first_row_chooser_gives_the_same_result_each_time(self, poa_provider):
        chooser = ScriptedChooser(answers=[1, 1, 1])
        resolver = Resolver(poa_provider, chooser=chooser)

        first = resolver.resolve_name("Poa annua", ask=True)
        second = resolver.resolve_name("Poa annua", ask=True)
        batch = resolver.resolve(["Poa annua"], ask=True)

        assert first == second == batch[0]
        assert first.value == "101"
        tables = [table for _, table in chooser.calls]
        assert len(tables) == 3
        assert_frame_equal(tables[0], tables[1])
        assert_frame_equal(tables[0], tables[2])

    @pytest.mark.parametrize("answer", [None, 0, 3, -1, True, "1"])
    def test_invalid_choice_is_declined(self, poa_provider, answer):
        chooser = ScriptedChooser(by_name={"Poa annua": answer})
        result = Resolver(poa_provider, chooser=chooser).resolve_name("Poa annua", ask=True)

        assert result.value is None
        assert result.match_status is MatchStatus.AMBIGUOUS_USER_DECLINED
        assert result.multiple_matches is True

    def test_chooser_not_consulted_without_ask(self, poa_provider):
        chooser = ScriptedChooser(answers=[1])
        Resolver(poa_provider, chooser=chooser).resolve_name("Poa annua", ask=False)
        assert chooser.calls == []

    def test_exact_match_settles_ambiguity_when_enabled(self):
        hits = {"Malus domestica": [rec(1, "Malus domestica"), rec(2, "Malus domestica var. x")]}
        provider = FakeProvider(hits=hits, exact_match_wins=True)
        result = Resolver(provider).resolve_name("Malus domestica", ask=False)

        assert result.value == "1"
        assert result.direct_match is True
        assert result.multiple_matches is True

    def test_exact_match_ignored_when_disabled(self):
        hits = {"Malus domestica": [rec(1, "Malus domestica"), rec(2, "Malus domestica var. x")]}
        provider = FakeProvider(hits=hits, exact_match_wins=False)
        result = Resolver(provider).resolve_name("Malus domestica", ask=False)
        assert result.match_status is MatchStatus.AMBIGUOUS_NO_ASK


class TestDetailStep:
    """Providers that expand search hits with a detail lookup"""

    def _provider(self, **kwargs):
        return FakeProvider(
            hits={"Puma concolor": [rec(10, "Puma concolor", page_id=10), rec(11, "Puma concolor couguar", page_id=11)]},
            details={
                "10": [rec(1001, "Puma concolor (Linnaeus, 1771)", "COL", page_id=10)],
                "11": [rec(1101, "Puma concolor couguar", "NCBI", page_id=11)],
            },
            needs_detail=True,
            **kwargs,
        )

    def test_detail_results_become_candidates(self):
        provider = self._provider()
        result = Resolver(provider).resolve_name("Puma concolor", ask=False)

        assert provider.detail_calls == ["10", "11"]
        assert result.match_status is MatchStatus.AMBIGUOUS_NO_ASK

    def test_failed_detail_drops_only_that_candidate(self, caplog):
        provider = self._provider(failing_details={"11"})
        with caplog.at_level(logging.WARNING, logger="taxonid"):
            result = Resolver(provider).resolve_name("Puma concolor", ask=False)

        assert result.value == "1001"
        assert result.direct_match is True
        assert result.multiple_matches is False
        assert "Puma concolor" in caplog.text

    def test_all_details_failing_is_not_found(self):
        provider = self._provider(failing_details={"10", "11"})
        result = Resolver(provider).resolve_name("Puma concolor", ask=False)
        assert result.match_status is MatchStatus.NOT_FOUND

    def test_duplicate_keys_are_fetched_once(self):
        provider = FakeProvider(
            hits={"Puma": [rec(10, "Puma", page_id=10), rec(10, "Puma", page_id=10)]},
            details={"10": [rec(1001, "Puma Jardine, 1834", page_id=10)]},
            needs_detail=True,
        )
        Resolver(provider).resolve_name("Puma", ask=False)
        assert provider.detail_calls == ["10"]

    def test_parallel_details_keep_order(self):
        sequential = Resolver(self._provider()).collect_candidates("Puma concolor")
        parallel = Resolver(self._provider(), detail_workers=4).collect_candidates("Puma concolor")
        assert parallel == sequential


class TestBatch:
    """Batch resolution over several names"""

    def test_batch_results_are_independent_and_ordered(self, poa_provider):
        ids = Resolver(poa_provider).resolve(["Chironomus riparius", "uaudnadndj"], ask=False)

        assert isinstance(ids, EolIds)
        assert ids.ids == ("201", None)
        assert ids.match == ("found", "not_found")

        reversed_ids = Resolver(poa_provider).resolve(["uaudnadndj", "Chironomus riparius"], ask=False)
        assert reversed_ids.ids == (None, "201")

    def test_single_string_is_one_name(self, poa_provider):
        ids = Resolver(poa_provider).resolve("Chironomus riparius", ask=False)
        assert len(ids) == 1
        assert poa_provider.search_calls == ["Chironomus riparius"]

    def test_duplicate_names_each_get_a_slot(self, poa_provider):
        ids = Resolver(poa_provider).resolve(["Chironomus riparius"] * 3, ask=False)
        assert ids.ids == ("201", "201", "201")

    def test_transport_failure_is_isolated(self, poa_provider, caplog):
        poa_provider.failing = {"Poa annua"}
        with caplog.at_level(logging.ERROR, logger="taxonid"):
            ids = Resolver(poa_provider).resolve(["Poa annua", "Chironomus riparius"], ask=False)

        assert ids.match == ("not_found", "found")
        assert "Poa annua" in caplog.text

    def test_strict_raises_after_whole_batch(self, poa_provider):
        poa_provider.failing = {"Poa annua"}
        with pytest.raises(BatchResolutionError) as excinfo:
            Resolver(poa_provider).resolve(
                ["Poa annua", "Chironomus riparius"], ask=False, strict=True
            )

        err = excinfo.value
        assert list(err.errors) == ["Poa annua"]
        assert err.results.ids == (None, "201")
        assert poa_provider.search_calls == ["Poa annua", "Chironomus riparius"]

    def test_strict_without_failures_returns_results(self, poa_provider):
        ids = Resolver(poa_provider).resolve(["Chironomus riparius"], ask=False, strict=True)
        assert ids.ids == ("201",)

    def test_missing_credential_raised_before_any_search(self):
        provider = FakeProvider(hits={"Poa annua": [rec(1, "Poa annua")]}, requires_key=True)
        with pytest.raises(MissingCredentialError):
            Resolver(provider).resolve(["Poa annua"], ask=False)
        assert provider.search_calls == []

    def test_parallel_matches_sequential(self):
        names = [f"Taxon {i}" for i in range(12)]
        hits = {name: [rec(i, name)] for i, name in enumerate(names) if i % 3}
        provider = FakeProvider(hits=hits)

        sequential = Resolver(provider).resolve(names, ask=False)
        parallel = Resolver(provider).resolve(names, ask=False, max_workers=4)

        assert parallel == sequential
        assert parallel.ids[0] is None
        assert parallel.ids[1] == "1"

    def test_interactive_batch_runs_sequentially(self, poa_provider, caplog):
        chooser = ScriptedChooser(answers=[1])
        with caplog.at_level(logging.WARNING, logger="taxonid"):
            ids = Resolver(poa_provider, chooser=chooser).resolve(
                ["Poa annua", "Chironomus riparius"], ask=True, max_workers=4
            )

        assert ids.ids == ("101", "201")
        assert "sequentially" in caplog.text

    def test_declining_chooser_in_batch(self, poa_provider):
        ids = Resolver(poa_provider, chooser=DeclineChooser()).resolve(["Poa annua"], ask=True)
        assert ids.match == ("ambiguous_user_declined",)


class TestResolveAll:
    """Candidate tables instead of single identifiers"""

    def test_pairs_in_input_order(self, poa_provider):
        pairs = Resolver(poa_provider).resolve_all(["Poa annua", "uaudnadndj", "Poa annua"])

        assert [name for name, _ in pairs] == ["Poa annua", "uaudnadndj", "Poa annua"]
        assert pairs[0][1]["id"].to_list() == ["101", "102"]
        assert pairs[1][1] is None
        assert pairs[2][1].height == 2

    def test_rows_are_applied(self, poa_provider):
        pairs = Resolver(poa_provider).resolve_all(["Poa annua"], rows=2)
        assert pairs[0][1]["id"].to_list() == ["102"]

    def test_failure_yields_none(self, poa_provider):
        poa_provider.failing = {"Poa annua"}
        pairs = Resolver(poa_provider).resolve_all(["Poa annua", "Chironomus riparius"])
        assert pairs[0] == ("Poa annua", None)
        assert pairs[1][1]["id"].to_list() == ["201"]

    def test_parallel_keeps_order(self, poa_provider):
        names = ["Chironomus riparius", "uaudnadndj", "Poa annua"]
        pairs = Resolver(poa_provider).resolve_all(names, max_workers=3)
        assert [name for name, _ in pairs] == names
        assert pairs[1][1] is None
