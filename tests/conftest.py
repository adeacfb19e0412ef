import os
import pathlib
import typing

os.environ.setdefault('GIT_PYTHON_REFRESH', 'quiet')

import attr  # noqa: E402
import click.testing  # noqa: E402
import pytest  # noqa: E402

import envbuddel.cli  # noqa: E402
from envbuddel.keys import Key  # noqa: E402

CLEAN_ENV = {
    'CI_SECRET': None,
    'ENVBUDDEL_KEYFILE': None,
    'ENVBUDDEL_ENV_CONF': None,
    'ENVBUDDEL_VAULT': None,
}


@pytest.fixture()
def key() -> Key:
    return Key.generate()


@pytest.fixture()
def workdir(tmp_path, monkeypatch) -> pathlib.Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture()
def run(workdir):
    def run_func(
            arguments: typing.Sequence[str],
            env: typing.Optional[typing.Dict[str, str]] = None) -> click.testing.Result:
        assert all(isinstance(arg, str) for arg in arguments)
        runner = click.testing.CliRunner()
        return runner.invoke(envbuddel.cli.main, list(arguments), env={**CLEAN_ENV, **(env or {})})

    return run_func


@pytest.fixture()
def invoke(run):
    def invoke_func(
            arguments: typing.Sequence[str],
            env: typing.Optional[typing.Dict[str, str]] = None) -> typing.List[str]:
        result = run(arguments, env)
        if result.exit_code != 0:
            message = f"Command envbuddel {' '.join(arguments)} failed:\n{result.output}"
            raise Exception(message) from result.exception
        return result.output.splitlines()

    return invoke_func


@attr.s(frozen=True)
class ExampleEnvironment:
    name: str = attr.ib()
    files: typing.Dict[str, bytes] = attr.ib()
    folder: bool = attr.ib()

    def __str__(self):
        return self.name

    def create(self, path: pathlib.Path) -> pathlib.Path:
        if not self.folder:
            path.write_bytes(self.files['.'])
            return path
        path.mkdir()
        for name, content in self.files.items():
            (path / name).parent.mkdir(parents=True, exist_ok=True)
            (path / name).write_bytes(content)
        return path

    def check(self, path: pathlib.Path) -> None:
        if not self.folder:
            assert path.read_bytes() == self.files['.']
            return
        for name, content in self.files.items():
            assert (path / name).read_bytes() == content


@pytest.fixture(params=[
    ExampleEnvironment(
        'file',
        {'.': b'DATABASE_URL=postgres://user:pass@db/app\nTOKEN=abc\n'},
        folder=False,
    ),
    ExampleEnvironment(
        'empty-file',
        {'.': b''},
        folder=False,
    ),
    ExampleEnvironment(
        'folder',
        {
            'app.env': b'TOKEN=abc\n',
            'a/b.txt': b'hi',
            'certs/deep/server.pem': b'-----BEGIN CERTIFICATE-----\n',
        },
        folder=True,
    ),
], ids=str)
def environment(request) -> ExampleEnvironment:
    return request.param
