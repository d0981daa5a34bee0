import pytest

from taxonid import cli
from taxonid.output_manager import read_table

from conftest import FakeProvider, rec


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("EOL_KEY", raising=False)
    monkeypatch.delenv("IUCN_REDLIST_KEY", raising=False)


@pytest.fixture
def fake_provider(monkeypatch):
    provider = FakeProvider(hits={
        "Poa annua": [rec(101, "Poa annua L.", "ITIS"), rec(102, "Poa annua", "COL")],
        "Chironomus riparius": [rec(201, "Chironomus riparius", "NCBI")],
    })
    monkeypatch.setattr(cli, "create_provider", lambda name, config: provider)
    return provider


def test_show_config_masks_keys(capsys, monkeypatch):
    monkeypatch.setenv("IUCN_REDLIST_KEY", "super-secret")
    assert cli.main(["--show-config"]) == 0
    out = capsys.readouterr().out
    assert "iucn_key: <set>" in out
    assert "super-secret" not in out


def test_command_is_required():
    with pytest.raises(SystemExit):
        cli.main([])


def test_resolve_prints_identifier_table(fake_provider, capsys):
    assert cli.main(["resolve", "-p", "eol", "Chironomus riparius", "uaudnadndj", "--no-ask"]) == 0
    out = capsys.readouterr().out
    assert "201" in out
    assert "not_found" in out


def test_resolve_writes_output_file(fake_provider, tmp_path):
    out_file = tmp_path / "ids.csv"
    code = cli.main(["resolve", "-p", "eol", "Poa annua", "--no-ask", "--rows", "2", "-o", str(out_file)])

    assert code == 0
    table = read_table(out_file)
    assert table["ids"].cast(str).to_list() == ["102"]
    assert table["match"].to_list() == ["found"]


def test_resolve_strict_failure_exits_nonzero(fake_provider):
    fake_provider.failing = {"Poa annua"}
    assert cli.main(["resolve", "-p", "eol", "Poa annua", "--no-ask", "--strict"]) == 1


def test_candidates_written_per_name(fake_provider, tmp_path):
    code = cli.main(["candidates", "-p", "eol", "Poa annua", "uaudnadndj", "-o", str(tmp_path)])

    assert code == 0
    assert (tmp_path / "Poa_annua.csv").exists()
    assert not (tmp_path / "uaudnadndj.csv").exists()


def test_check_without_network(capsys):
    assert cli.main(["check", "-p", "eol", "24954444", "51389511", "--no-check"]) == 0
    out = capsys.readouterr().out
    assert "24954444" in out
    assert "51389511" in out


def test_iucn_summary_without_token_fails():
    assert cli.main(["iucn-summary", "Panthera uncia"]) == 1


def test_invalid_wiki_site_is_a_usage_error():
    with pytest.raises(SystemExit):
        cli.main(["--wiki-site", "wiktionary", "resolve", "-p", "wiki", "Malus"])
