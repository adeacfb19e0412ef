import functools
import logging
import os.path
import pathlib
import sys
import typing

import attr
import click

from . import __doc__, __version__, api
from .keys import Key, load_key, save_key
from .utils import EnvbuddelException, WriteError

log = logging.getLogger(__name__)


@functools.lru_cache()
def rel(path: pathlib.Path) -> str:
    """
    Convert a path to a relative Path.

    Returns a string as these should only be used for presentation.
    """
    return os.path.relpath(path.as_posix(), pathlib.Path.cwd().as_posix())


def warn(message: str) -> None:
    click.secho(message, fg='yellow')


class PathType(click.Path):
    def convert(self, value, param, ctx):
        return pathlib.Path(super().convert(value, param, ctx))


class ColourFormatter(logging.Formatter):
    colours = {
        logging.WARNING: 'yellow',
        logging.ERROR: 'bright_red',
        logging.CRITICAL: 'bright_red',
    }

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        colour = self.colours.get(record.levelno)
        return click.style(message, fg=colour) if colour else message


def configure_logging(verbose: int) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColourFormatter('[%(levelname)s] %(message)s'))
    logging.basicConfig(
        level=(logging.DEBUG if verbose else logging.INFO),
        handlers=[handler])


@attr.s(frozen=True, kw_only=True)
class Settings:
    key: typing.Optional[str] = attr.ib(repr=False)
    keyfile: pathlib.Path = attr.ib()
    env_conf: pathlib.Path = attr.ib()
    vault: pathlib.Path = attr.ib()

    def load_key(self) -> Key:
        key, source = load_key(self.key, self.keyfile)
        log.info(f"Key was loaded from {source}")
        return key


@click.group(help=__doc__)
@click.option(
    '-v', '--verbose',
    count=True,
    help="Enable debug logging.")
@click.option(
    '--keyfile',
    type=PathType(dir_okay=False),
    envvar='ENVBUDDEL_KEYFILE',
    default='safe.key',
    show_default=True,
    help="Path to the keyfile.")
@click.option(
    '--key',
    metavar='KEY',
    envvar='CI_SECRET',
    default=None,
    help="Content of the key, takes precedence over --keyfile.")
@click.option(
    '--env-conf',
    type=PathType(),
    envvar='ENVBUDDEL_ENV_CONF',
    default='.env',
    show_default=True,
    help="Path to the environment file or folder.")
@click.option(
    '--vault',
    type=PathType(dir_okay=False),
    envvar='ENVBUDDEL_VAULT',
    default='env.enc',
    show_default=True,
    help="Path to the vault file.")
@click.pass_context
def main(
        ctx,
        verbose: int,
        keyfile: pathlib.Path,
        key: typing.Optional[str],
        env_conf: pathlib.Path,
        vault: pathlib.Path):
    configure_logging(verbose)
    ctx.obj = Settings(key=key, keyfile=keyfile, env_conf=env_conf, vault=vault)


@main.command()
def version():
    """Show the application version."""
    click.echo(f"envbuddel {__version__}")


@main.command()
@click.pass_obj
def info(settings: Settings):
    """Show the key, vault and environment that the options select."""
    # Only info and init need git.
    from . import gitignore

    if settings.key:
        try:
            key = Key.from_printable(settings.key.strip())
        except EnvbuddelException:
            warn("Failed to load key from CI_SECRET. "
                 "It needs to be 32 bytes encoded as Base62!")
        else:
            click.echo(f'CI_SECRET="{key.to_printable()}"')

    try:
        key, _ = load_key(None, settings.keyfile)
    except EnvbuddelException as error:
        warn(error.format_message())
    else:
        click.echo(f'Key contained in {rel(settings.keyfile)}: "{key.to_printable()}"')

    key = settings.load_key()

    if settings.vault.is_file():
        click.echo(f"Vault file {rel(settings.vault)} exists.")
        api.decrypt_vault(key, api.read_vault(settings.vault))
        click.echo("Successfully decrypted vault file.")
    else:
        warn("No vault file detected!")

    if settings.env_conf.is_file():
        click.echo(f"Environment configuration file {rel(settings.env_conf)} found.")
    elif settings.env_conf.is_dir():
        click.echo(f"Environment configuration folder {rel(settings.env_conf)} found.")
    elif settings.env_conf.exists():
        warn("Environment configuration is neither file nor folder!")
    else:
        warn("Environment configuration file/folder does not exist!")

    try:
        for path in gitignore.unignored([settings.keyfile, settings.env_conf]):
            warn(f"{rel(path)} is not excluded by .gitignore")
    except EnvbuddelException as error:
        warn(error.format_message())


@main.command()
@click.option(
    '--folder',
    default=False,
    is_flag=True,
    help="Create a folder instead of a single file for the environment.")
@click.option(
    '--force/--no-force',
    default=False,
    help="Replace an existing keyfile.")
@click.pass_obj
def init(settings: Settings, folder: bool, force: bool):
    """
    Create a new key, environment and vault.

    The keyfile and the environment are added to .gitignore.
    """
    from . import gitignore

    if settings.keyfile.exists() and not force:
        raise EnvbuddelException(
            f"Keyfile {rel(settings.keyfile)} already exists, "
            f"use --force to replace it")

    key = Key.generate()
    click.echo("Please run this to provide the key as environment variable:\n")
    click.echo(f'  $ export CI_SECRET="{key.to_printable()}"\n')

    save_key(key, settings.keyfile)
    click.echo(f"Key written to {rel(settings.keyfile)}")

    gitignore.ignore_paths([settings.keyfile, settings.env_conf])

    try:
        if folder:
            settings.env_conf.mkdir(parents=True, exist_ok=True)
            click.echo(f"Created folder {rel(settings.env_conf)}")
        elif not settings.env_conf.exists():
            settings.env_conf.write_bytes(b'')
            click.echo(f"Created file {rel(settings.env_conf)}")
    except OSError as error:
        raise WriteError(
            f"Failed to create {settings.env_conf}: {error}") from error

    api.write_vault(settings.vault, api.encrypt_path(key, settings.env_conf))
    click.echo(f"Encrypted {rel(settings.env_conf)} to {rel(settings.vault)}")


@main.command()
@click.pass_obj
def encrypt(settings: Settings):
    """Encrypt the environment and store it in the vault."""
    key = settings.load_key()
    api.write_vault(settings.vault, api.encrypt_path(key, settings.env_conf))
    click.echo(f"Encrypted {rel(settings.env_conf)} to {rel(settings.vault)}")


@main.command()
@click.pass_obj
def decrypt(settings: Settings):
    """Decrypt the vault and unpack the environment to --env-conf."""
    key = settings.load_key()
    api.decrypt_vault_to(key, api.read_vault(settings.vault), settings.env_conf)
    click.echo(f"Decrypted {rel(settings.vault)} to {rel(settings.env_conf)}")
