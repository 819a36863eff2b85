import subprocess
from unittest.mock import Mock, patch

import pytest

from assetflip.errors import RevisionLookupError
from assetflip.services.catalog import ArtifactCatalog
from assetflip.services.revision import GitRevisionLookup, RevisionInfo
from assetflip.tests.fakes import NOW, FakeS3, published_objects
from assetflip.utils.s3_handler import S3Handler


def _completed(returncode=0, stdout=b"", stderr=b""):
    return Mock(returncode=returncode, stdout=stdout, stderr=stderr)


@patch("assetflip.services.revision.subprocess.run")
def test_lookup_parses_author_date_and_subject(run_mock):
    run_mock.return_value = _completed(stdout="Sam Example\x1f2025-05-30 10:11\x1fFix the login form\n".encode())

    info = GitRevisionLookup(repo_dir="/repo").lookup("abc1234")

    assert info == RevisionInfo(author="Sam Example", date="2025-05-30 10:11", message="Fix the login form")
    cmd = run_mock.call_args[0][0]
    assert cmd[:3] == ["git", "log", "-1"]
    assert cmd[-2:] == ["abc1234", "--"]
    assert run_mock.call_args[1]["cwd"] == "/repo"


@patch("assetflip.services.revision.subprocess.run")
def test_unknown_revision_raises(run_mock):
    run_mock.return_value = _completed(returncode=128, stderr=b"fatal: bad object deadbeef")

    with pytest.raises(RevisionLookupError, match="bad object"):
        GitRevisionLookup().lookup("deadbeef")


@patch("assetflip.services.revision.subprocess.run")
def test_missing_git_binary_raises(run_mock):
    run_mock.side_effect = FileNotFoundError("git")

    with pytest.raises(RevisionLookupError):
        GitRevisionLookup(git_bin="/nope/git").lookup("abc1234")


@patch("assetflip.services.revision.subprocess.run")
def test_timeout_raises(run_mock):
    run_mock.side_effect = subprocess.TimeoutExpired(cmd="git", timeout=1)

    with pytest.raises(RevisionLookupError):
        GitRevisionLookup(timeout=1).lookup("abc1234")


@patch("assetflip.services.revision.subprocess.run")
def test_unexpected_output_raises(run_mock):
    run_mock.return_value = _completed(stdout=b"")

    with pytest.raises(RevisionLookupError, match="unexpected output"):
        GitRevisionLookup().lookup("abc1234")


@pytest.mark.parametrize("revision_id", [
    "--output=/tmp/clobbered.txt",
    "-p",
    "main",
    "abc1234 --all",
    "",
    None,
])
@patch("assetflip.services.revision.subprocess.run")
def test_non_sha_revision_never_reaches_git(run_mock, revision_id):
    with pytest.raises(RevisionLookupError, match="not a commit sha"):
        GitRevisionLookup().lookup(revision_id)
    run_mock.assert_not_called()


def test_option_shaped_git_info_degrades_the_label(tmp_path):
    target = tmp_path / "clobbered.txt"
    _, objects = published_objects("assets", f"--output={target}", "main", NOW)
    client = FakeS3(objects)
    catalog = ArtifactCatalog(
        lambda bucket: S3Handler(bucket, s3_client=client),
        revisions=GitRevisionLookup(repo_dir=str(tmp_path)),
        package_name="webapp",
    )

    with patch("assetflip.services.revision.subprocess.run") as run_mock:
        record = catalog.enrich(catalog.list_manifests("bucket1", "assets")[0])

    run_mock.assert_not_called()
    assert record.display_label.endswith("unknown revision")
    assert not target.exists()
