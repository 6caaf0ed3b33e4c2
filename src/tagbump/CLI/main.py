"""
Command Line Interface for tagbump.
"""
import click
from ..CONFIG.policy_table import DEFAULT_POLICIES, OFFICIAL_VERSIONS, load_policy_file
from ..CONFIG.settings import Settings
from ..MANAGERS.updater import ComposeUpdater
from ..MODELS.policy import Mode
from ..REPORTERS.console import ConsoleReporter
from ..exceptions import ComposeFileNotFoundError, TagbumpError

CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])

EPILOG = """\b
Examples:
  tagbump docker-compose.yml                 # Conservative updates
  tagbump --official docker-compose.yml      # Use official tested versions
"""


@click.command(context_settings=CONTEXT_SETTINGS, epilog=EPILOG)
@click.option('--official', is_flag=True, help='Use official tested version combinations')
@click.option('--policy', 'policy_file', type=click.Path(dir_okay=False),
              help='YAML file overriding update policies and official pins')
@click.option('--env-file', type=click.Path(dir_okay=False),
              help='.env file with TAGBUMP_* settings')
@click.argument('compose_file', required=False, default='docker-compose.yml')
@click.pass_context
def cli(ctx, official, policy_file, env_file, compose_file):
    """
    Update image tags in a Docker Compose file.

    Looks up newer stable tags for every known image, keeps base-image
    flavors and database major versions, and rewrites COMPOSE_FILE in place
    after saving a timestamped backup next to it.
    """
    reporter = ConsoleReporter()
    try:
        settings = Settings.from_env(env_file)
        policies, official_versions = DEFAULT_POLICIES, OFFICIAL_VERSIONS
        if policy_file:
            policies, official_versions = load_policy_file(policy_file)

        updater = ComposeUpdater(
            compose_file=compose_file,
            mode=Mode.OFFICIAL if official else Mode.CONSERVATIVE,
            policies=policies,
            official=official_versions,
            settings=settings,
            reporter=reporter,
        )
        report = updater.run()
    except TagbumpError as e:
        reporter.error(str(e))
        if isinstance(e, ComposeFileNotFoundError):
            click.echo("Usage: tagbump [options] [compose-file]", err=True)
        ctx.exit(1)

    reporter.summary(report)


def main():
    """
    Main entry point for the CLI.
    """
    cli()


if __name__ == '__main__':
    main()
