import pytest

from taxonid.config import Config
from taxonid.exceptions import MissingCredentialError


def test_defaults():
    config = Config()
    assert config.eol_key is None
    assert config.wiki_site == "species"
    assert config.wiki_lang == "en"
    assert config.wiki_limit == 100
    assert config.max_workers == 1


def test_from_env_reads_keys():
    config = Config.from_env({"EOL_KEY": "eol-secret", "IUCN_REDLIST_KEY": "iucn-secret"})
    assert config.eol_key == "eol-secret"
    assert config.iucn_key == "iucn-secret"


def test_from_env_overrides_take_precedence():
    config = Config.from_env({"EOL_KEY": "from-env"}, eol_key="explicit", wiki_site=None)
    assert config.eol_key == "explicit"
    assert config.wiki_site == "species"


def test_from_env_ignores_empty_values():
    assert Config.from_env({"IUCN_REDLIST_KEY": ""}).iucn_key is None


def test_update_returns_new_config():
    config = Config()
    updated = config.update({"wiki_site": "pedia", "wiki_lang": "de"})
    assert updated.wiki_site == "pedia"
    assert config.wiki_site == "species"


def test_update_rejects_unknown_keys():
    with pytest.raises(ValueError, match="Unknown configuration parameter: colour"):
        Config().update({"colour": "blue"})


@pytest.mark.parametrize("kwargs", [
    {"wiki_site": "wiktionary"},
    {"output_format": "xlsx"},
    {"max_workers": 0},
    {"detail_workers": -1},
])
def test_invalid_values_are_rejected(kwargs):
    with pytest.raises(ValueError):
        Config(**kwargs)


def test_require_names_the_environment_variable():
    with pytest.raises(MissingCredentialError, match="IUCN_REDLIST_KEY"):
        Config().require("iucn_key")
    assert Config(iucn_key="abc").require("iucn_key") == "abc"


def test_summary_masks_credentials():
    summary = Config(eol_key="super-secret").get_config_summary()
    assert "super-secret" not in summary
    assert "eol_key: <set>" in summary
    assert "iucn_key: <unset>" in summary
