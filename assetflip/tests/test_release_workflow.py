from datetime import timedelta
from unittest.mock import Mock

import boto3
import pytest
from moto import mock_aws

from assetflip.errors import IdentifierTooShort, NoMatchingArtifact
from assetflip.models.environment import EnvironmentRelease
from assetflip.services.activator import ReleaseActivator
from assetflip.services.catalog import ArtifactCatalog
from assetflip.services.parameter_store import ParameterStore
from assetflip.services.release_workflow import ReleaseStatus, ReleaseWorkflow
from assetflip.services.revision import RevisionInfo
from assetflip.services.selector import ReleaseSelector
from assetflip.tests.fakes import NOW, FakeRevisions, FakeS3, ScriptedPrompter, make_config, published_objects
from assetflip.utils.s3_handler import S3Handler


def _bucket_with_builds():
    objects = {}
    hashes = {}
    for i, (commit, branch) in enumerate([
        ("aaaaaaa1111", "feature/login"),
        ("bbbbbbb2222", "master"),
        ("ccccccc3333", "master"),
    ]):
        h, objs = published_objects("assets", commit, branch, NOW - timedelta(days=i))
        hashes[commit] = h
        objects.update(objs)
    return hashes, objects


def _revisions():
    return FakeRevisions({
        commit: RevisionInfo(author="Sam", date="2025-05-30 10:11", message=f"commit {commit}")
        for commit in ("aaaaaaa1111", "bbbbbbb2222", "ccccccc3333")
    })


def _workflow(prompter, objects=None, store=None, notifier=None, config=None, revisions=None):
    config = config or make_config()
    client = FakeS3(objects if objects is not None else _bucket_with_builds()[1])
    if store is None:
        store = Mock(spec=ParameterStore)
        store.fetch_releases.side_effect = lambda envs: [EnvironmentRelease(environment=e) for e in envs]
    catalog = ArtifactCatalog(
        lambda bucket: S3Handler(bucket, s3_client=client),
        revisions=revisions or _revisions(),
        package_name=config.package_name,
    )
    workflow = ReleaseWorkflow(
        config=config,
        parameter_store=store,
        catalog=catalog,
        selector=ReleaseSelector(prompter, config.package_name, config.protected_branch_name),
        activator=ReleaseActivator(store, config.package_name, notifier=notifier),
        operator="jo",
    )
    return workflow, store, client


def test_short_commit_fails_before_any_prompt_or_aws_call():
    prompter = ScriptedPrompter()
    workflow, store, client = _workflow(prompter)

    with pytest.raises(IdentifierTooShort):
        workflow.run(environment_key="prod", commit="ab12")

    assert prompter.asked == []
    store.fetch_releases.assert_not_called()
    store.put_pointer.assert_not_called()
    assert client.list_calls == []


def test_empty_catalog_stops_with_guidance(capsys):
    prompter = ScriptedPrompter()
    workflow, store, _ = _workflow(prompter, objects={})

    outcome = workflow.run(environment_key="dev")

    assert outcome.status is ReleaseStatus.NOTHING_DEPLOYED
    assert outcome.release.key == "dev"
    assert "There are no currently deployed versions" in capsys.readouterr().out
    assert prompter.asked == []
    store.put_pointer.assert_not_called()


def test_declining_writes_nothing_and_notifies_no_one(capsys):
    prompter = ScriptedPrompter(confirms=[False])
    notifier = Mock()
    workflow, store, _ = _workflow(prompter, notifier=notifier)

    outcome = workflow.run(environment_key="prod", commit="bbbbbbb")

    assert outcome.status is ReleaseStatus.CANCELLED
    store.put_pointer.assert_not_called()
    notifier.send.assert_not_called()
    assert "Cancelling release..." in capsys.readouterr().out


def test_declining_the_branch_warning_writes_nothing():
    prompter = ScriptedPrompter(confirms=[True, False])
    notifier = Mock()
    workflow, store, _ = _workflow(prompter, notifier=notifier)

    outcome = workflow.run(environment_key="prod", commit="aaaaaaa")

    assert outcome.status is ReleaseStatus.CANCELLED
    assert len(prompter.confirms_asked) == 2
    store.put_pointer.assert_not_called()
    notifier.send.assert_not_called()


def test_release_by_commit_writes_pointer_and_notifies():
    hashes, objects = _bucket_with_builds()
    prompter = ScriptedPrompter(confirms=[True])
    notifier = Mock()
    notifier.commit_url.side_effect = lambda rev: f"https://github.com/example/webapp/commit/{rev}"
    revisions = _revisions()
    workflow, store, client = _workflow(prompter, objects=objects, notifier=notifier, revisions=revisions)

    outcome = workflow.run(environment_key="prod", commit="bbbbbbb22")

    assert outcome.status is ReleaseStatus.RELEASED
    assert outcome.artifact.build_hash == hashes["bbbbbbb2222"]
    store.put_pointer.assert_called_once_with("/webapp/prod", hashes["bbbbbbb2222"])
    notifier.send.assert_called_once()
    channel, text = notifier.send.call_args[0]
    assert channel == "#releases"
    assert text.startswith("*jo* successfully released a new webapp version to *prod*")
    # only the released build needed its git details
    assert revisions.looked_up == ["bbbbbbb2222"]
    # the listing went to the production bucket
    assert all(call["Prefix"] == "assets/" for call in client.list_calls)


def test_interactive_release_picks_from_newest_first():
    hashes, objects = _bucket_with_builds()
    # environment: dev (index 0); artifact: second newest (index 1)
    prompter = ScriptedPrompter(confirms=[True], choices=[0, 1])
    workflow, store, _ = _workflow(prompter, objects=objects)

    outcome = workflow.run()

    assert outcome.status is ReleaseStatus.RELEASED
    assert outcome.release.key == "dev"
    labels = prompter.choice_captions[1]
    assert "git[aaaaaaa]" in labels[0]
    assert "git[bbbbbbb]" in labels[1]
    store.put_pointer.assert_called_once_with("/webapp/dev", hashes["bbbbbbb2222"])


def test_display_limit_caps_the_choices():
    _, objects = _bucket_with_builds()
    prompter = ScriptedPrompter(confirms=[False])
    workflow, _, _ = _workflow(prompter, objects=objects, config=make_config(display_limit=2))

    workflow.run(environment_key="dev")

    assert len(prompter.choice_captions[0]) == 2


def test_commit_outside_display_window_is_not_found():
    _, objects = _bucket_with_builds()
    workflow, store, _ = _workflow(ScriptedPrompter(), objects=objects, config=make_config(display_limit=2))

    with pytest.raises(NoMatchingArtifact):
        workflow.run(environment_key="dev", commit="ccccccc")
    store.put_pointer.assert_not_called()


@mock_aws
def test_release_against_moto_ssm_overwrites_pointer():
    ssm = boto3.client("ssm", region_name="us-east-1")
    ssm.put_parameter(Name="/webapp/dev", Value="old", Type="String")
    hashes, objects = _bucket_with_builds()
    store = ParameterStore(ssm)

    workflow, _, _ = _workflow(ScriptedPrompter(confirms=[True]), objects=objects, store=store)
    workflow.run(environment_key="dev", commit="ccccccc")

    value = ssm.get_parameter(Name="/webapp/dev")["Parameter"]["Value"]
    assert value == hashes["ccccccc3333"]
