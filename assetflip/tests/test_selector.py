import pytest

from assetflip.errors import EmptyCatalog, IdentifierTooShort, NoMatchingArtifact, UnknownEnvironment
from assetflip.models.environment import EnvironmentRelease
from assetflip.services.selector import ReleaseSelector, validate_identifier
from assetflip.tests.fakes import ScriptedPrompter, make_config, make_record


def _releases():
    config = make_config()
    dev, qa, prod = config.environments
    return [
        EnvironmentRelease(environment=dev, released_hash="f" * 64),
        EnvironmentRelease(environment=qa),
        EnvironmentRelease(environment=prod, released_hash="0123456789" + "a" * 54),
    ]


def _records():
    return [
        make_record("1" * 64, days_old=1, revision_id="abcdef1234", branch_name="feature/x"),
        make_record("2" * 64, days_old=2, revision_id="abcdef1999", branch_name="master"),
        make_record("3" * 64, days_old=3, revision_id="0011223344", branch_name="master"),
    ]


def _selector(prompter=None):
    return ReleaseSelector(prompter or ScriptedPrompter(), "webapp")


@pytest.mark.parametrize("candidate", ["", "a", "ab12", "abcdef"])
def test_short_identifiers_are_rejected(candidate):
    with pytest.raises(IdentifierTooShort) as exc:
        validate_identifier(candidate)
    assert exc.value.minimum == 7


def test_seven_characters_is_enough():
    assert validate_identifier("abcdef1") == "abcdef1"


def test_environment_by_key():
    release = _selector().resolve_environment(_releases(), "qa")
    assert release.key == "qa"
    assert release.released_hash is None


def test_unknown_environment_lists_valid_keys():
    with pytest.raises(UnknownEnvironment) as exc:
        _selector().resolve_environment(_releases(), "staging")
    assert exc.value.valid_keys == ["dev", "qa", "prod"]
    assert '"staging" does not appear to be a valid environment' in str(exc.value)


def test_environment_prompt_shows_what_is_live():
    prompter = ScriptedPrompter(choices=[2])
    release = _selector(prompter).resolve_environment(_releases())

    assert release.key == "prod"
    captions = prompter.choice_captions[0]
    assert captions[0] == "Dev".ljust(12) + " fffffff"
    assert captions[1].endswith("Unreleased!")
    assert captions[2].endswith("0123456")


def test_first_prefix_match_in_display_order_wins():
    record = _selector().resolve_artifact(_records(), "abcdef1")
    assert record.build_hash == "1" * 64

    assert _selector().resolve_artifact(_records(), "abcdef19").build_hash == "2" * 64


def test_no_match_raises():
    with pytest.raises(NoMatchingArtifact):
        _selector().resolve_artifact(_records(), "9999999")


def test_short_candidate_is_rejected_before_matching():
    with pytest.raises(IdentifierTooShort):
        _selector().resolve_artifact(_records(), "ab12")


def test_empty_catalog():
    with pytest.raises(EmptyCatalog):
        _selector().resolve_artifact([], None)


def test_artifact_prompt_uses_labels():
    records = _records()
    records[0].display_label = "label one"
    prompter = ScriptedPrompter(choices=[1])

    chosen = _selector(prompter).resolve_artifact(records)

    assert chosen is records[1]
    assert prompter.choice_captions[0][0] == "label one"
    assert len(prompter.choice_captions[0]) == 3


def test_blank_answer_declines():
    prompter = ScriptedPrompter()
    release = _releases()[0]
    assert _selector(prompter).confirm(release, _records()[0]) is False
    assert len(prompter.confirms_asked) == 1
    assert "Do you want to release webapp git[abcdef1] hash[1111111] to dev?" == prompter.confirms_asked[0]


def test_unprotected_environment_asks_once():
    prompter = ScriptedPrompter(confirms=[True])
    assert _selector(prompter).confirm(_releases()[0], _records()[0]) is True
    assert len(prompter.confirms_asked) == 1


def test_protected_environment_warns_for_other_branches():
    prompter = ScriptedPrompter(confirms=[True, True])
    prod = _releases()[2]

    assert _selector(prompter).confirm(prod, _records()[0]) is True
    assert len(prompter.confirms_asked) == 2
    assert "non-master branch[feature/x]" in prompter.confirms_asked[1]
    assert "environment[production]" in prompter.confirms_asked[1]


def test_protected_environment_warning_defaults_to_no():
    prompter = ScriptedPrompter(confirms=[True])
    assert _selector(prompter).confirm(_releases()[2], _records()[0]) is False
    assert len(prompter.confirms_asked) == 2


def test_protected_environment_master_branch_asks_once():
    prompter = ScriptedPrompter(confirms=[True])
    assert _selector(prompter).confirm(_releases()[2], _records()[1]) is True
    assert len(prompter.confirms_asked) == 1


def test_protected_branch_name_is_configurable():
    selector = ReleaseSelector(ScriptedPrompter(), "webapp", protected_branch_name="main")
    record = make_record("4" * 64, revision_id="abcdef0000", branch_name="main")
    assert not selector.needs_branch_warning(_releases()[2], record)
    assert selector.needs_branch_warning(_releases()[2], _records()[1])


def test_confirm_names_unknown_revision_when_untagged():
    prompter = ScriptedPrompter()
    untagged = make_record("5" * 64)

    _selector(prompter).confirm(_releases()[0], untagged)

    assert "git[unknown] hash[5555555]" in prompter.confirms_asked[0]
    assert "None" not in prompter.confirms_asked[0]
