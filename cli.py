import argparse
import getpass
import logging
import sys
from datetime import timedelta

from assetflip.errors import AssetFlipError, ConfigurationError
from assetflip.services.activator import ReleaseActivator
from assetflip.services.build_identity import configure, read_manifest
from assetflip.services.catalog import ArtifactCatalog
from assetflip.services.config_loader import load_config
from assetflip.services.notifier import SlackNotifier
from assetflip.services.parameter_store import ParameterStore
from assetflip.services.publisher import ArtifactPublisher
from assetflip.services.release_workflow import ReleaseWorkflow
from assetflip.services.revision import GitRevisionLookup
from assetflip.services.selector import ReleaseSelector
from assetflip.services.sweeper import RetentionSweeper
from assetflip.utils.aws_clients import AwsClients
from assetflip.utils.file_globber import collect_local_files
from assetflip.utils.prompts import Prompter
from assetflip.utils.s3_handler import S3Handler

logger = logging.getLogger("assetflip")


# run pip install -e .
# then `assetflip --help`
class Context:
    """Everything a command needs, built once from the parsed args."""

    def __init__(self, args):
        self.config = load_config(args.config)
        self.clients = AwsClients(region=self.config.bucket_region, profile=getattr(args, "profile", None))
        self.prompter = Prompter()

    def handler(self, bucket: str) -> S3Handler:
        return S3Handler(bucket, s3_client=self.clients.s3())

    def parameter_store(self) -> ParameterStore:
        return ParameterStore(self.clients.ssm())

    def catalog(self) -> ArtifactCatalog:
        return ArtifactCatalog(
            self.handler,
            revisions=GitRevisionLookup(),
            package_name=self.config.package_name,
            max_workers=self.config.max_workers,
        )


def configure_cmd(args) -> int:
    config = load_config(args.config)
    manifest = configure(args.commit, args.branch, config.base_path, config.manifest_path)
    print(f"assetflip successfully configured; the current build info can be found at {config.manifest_path}")
    print(f"  build hash: {manifest.build_hash}")
    print(f"  prefix:     {manifest.storage_prefix}\n")
    return 0


def deploy_cmd(args) -> int:
    ctx = Context(args)
    config = ctx.config
    manifest = read_manifest(config.manifest_path)
    files = collect_local_files(config.manifest_path, config.file_globs, config.local_file_paths)

    publisher = ArtifactPublisher(ctx.handler)
    report = publisher.publish(
        config.bucket_names.values(), manifest, files, config.manifest_path, dry_run=args.dry_run
    )
    if report.failures:
        print(
            f"{len(report.failures)} of {len(report.results)} upload(s) failed for build {manifest.build_hash}.",
            file=sys.stderr,
        )
        return 1
    print(f"Deployed {len(report.results)} upload(s) for build {manifest.build_hash}.")
    return 0


def release_cmd(args) -> int:
    ctx = Context(args)
    config = ctx.config
    notifier = SlackNotifier(config.notification) if config.notification else None
    store = ctx.parameter_store()

    workflow = ReleaseWorkflow(
        config=config,
        parameter_store=store,
        catalog=ctx.catalog(),
        selector=ReleaseSelector(ctx.prompter, config.package_name, config.protected_branch_name),
        activator=ReleaseActivator(
            store,
            config.package_name,
            remote_functions=config.remote_activation_functions,
            lambda_client=ctx.clients.lambda_() if config.remote_activation_functions else None,
            notifier=notifier,
        ),
        operator=getpass.getuser(),
    )
    workflow.run(environment_key=args.environment, commit=args.commit)
    return 0


def cleanup_cmd(args) -> int:
    ctx = Context(args)
    retention = timedelta(days=args.retention_days) if args.retention_days else None
    sweeper = RetentionSweeper(
        ctx.config, ctx.parameter_store(), ctx.catalog(), ctx.handler, ctx.prompter
    )
    sweeper.run(retention=retention)
    return 0


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='assetflip',
        description='Publish frontend build artifacts to S3 and switch which '
                    'published build is live per environment through SSM '
                    'Parameter Store.'
    )
    parser.add_argument('--config', default='package.json',
                        help='Configuration file (default: package.json with an "assetflip" section)')
    parser.add_argument('--profile', default=None, help='AWS profile name')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log progress at INFO level')

    # since we're having different functions, use subparsers for each one
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    configure_parser = subparsers.add_parser(
        'configure',
        help='Write the local build manifest for a commit on a branch'
    )
    configure_parser.add_argument('commit', help='git commit sha of the build')
    configure_parser.add_argument('branch', help='git branch of the build')
    configure_parser.set_defaults(func=configure_cmd)

    deploy_parser = subparsers.add_parser(
        'deploy',
        help='Upload the configured build to every bucket'
    )
    deploy_parser.add_argument('--dry-run', '--pretend', '-p', dest='dry_run', action='store_true',
                               help='Do not actually send the files')
    deploy_parser.set_defaults(func=deploy_cmd)

    release_parser = subparsers.add_parser(
        'release',
        help='Turn a previously deployed build on for an environment'
    )
    release_parser.add_argument('--environment', '-e', default=None, help='environment key to release to')
    release_parser.add_argument('--commit', '-c', default=None,
                                help='git sha (at least 7 characters) of the build to release')
    release_parser.set_defaults(func=release_cmd)

    cleanup_parser = subparsers.add_parser(
        'delete-old-deploys',
        help='Delete old builds that no environment is using'
    )
    cleanup_parser.add_argument('--retention-days', type=_positive_int, default=None,
                                help='Override the configured retention window (default: 90 days)')
    cleanup_parser.set_defaults(func=cleanup_cmd)

    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.INFO if getattr(args, 'verbose', False) else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    # execute the passed function
    try:
        code = args.func(args)
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        code = 1
    except AssetFlipError as e:
        logger.debug("command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        code = 1
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        code = 130
    sys.exit(code)


if __name__ == '__main__':
    main()
