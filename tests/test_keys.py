import pytest

from envbuddel.keys import (
    B62_ALPHABET,
    Key,
    KeySource,
    b62decode,
    b62encode,
    load_key,
    save_key,
)
from envbuddel.utils import (
    EncodingError,
    InvalidKeyLength,
    KeyfileEmpty,
    KeyfileUnreadable,
)


def test_generate():
    assert len(Key.generate().material) == 32


def test_generate_is_random():
    assert Key.generate() != Key.generate()


@pytest.mark.parametrize('size', [0, 1, 16, 31, 33, 64])
def test_from_bytes_invalid_length(size):
    with pytest.raises(InvalidKeyLength):
        Key.from_bytes(b'\x01' * size)


def test_repr_hides_material():
    assert repr(Key.from_bytes(b'\xab' * 32)) == 'Key()'


def test_base64(key):
    assert Key.from_base64(key.to_base64()) == key


def test_base64_is_urlsafe_without_padding(key):
    text = key.to_base64()
    assert len(text) == 43
    assert not set(text) & {'=', '+', '/'}


@pytest.mark.parametrize('text', ['not base64!', 'abc$', 'A', 'a' * 43 + '=', 'a' * 43 + '\n'])
def test_base64_invalid(text):
    with pytest.raises(EncodingError):
        Key.from_base64(text)


def test_base64_wrong_length():
    with pytest.raises(InvalidKeyLength):
        Key.from_base64('AAAA')


def test_printable(key):
    assert Key.from_printable(key.to_printable()) == key


def test_printable_alphabet(key):
    assert set(key.to_printable()) <= set(B62_ALPHABET)


@pytest.mark.parametrize('material', [
    b'\0' * 32,
    b'\0\0\x01' + b'\xff' * 29,
    b'\xff' * 32,
], ids=['zeros', 'leading-zeros', 'ones'])
def test_printable_edge_values(material):
    key = Key.from_bytes(material)
    assert Key.from_printable(key.to_printable()) == key


@pytest.mark.parametrize('text', ['', 'abc-def', 'with space', 'ü'])
def test_printable_invalid(text):
    with pytest.raises(EncodingError):
        Key.from_printable(text)


def test_printable_wrong_length():
    with pytest.raises(InvalidKeyLength):
        Key.from_printable('hello')


def test_b62_bytes():
    for data in [b'\0', b'\0\0abc', b'hello world', bytes(range(256))]:
        assert b62decode(b62encode(data)) == data


def test_b62_empty():
    assert b62encode(b'') == ''
    with pytest.raises(EncodingError):
        b62decode('')


def test_load_key_from_file(tmp_path, key):
    keyfile = tmp_path / 'safe.key'
    keyfile.write_text(f'{key.to_printable()}\n\n')

    loaded, source = load_key(None, keyfile)

    assert loaded == key
    assert source == KeySource.file(keyfile)
    assert not source.from_environment


def test_load_key_prefers_explicit_value(tmp_path, key):
    keyfile = tmp_path / 'safe.key'
    save_key(Key.generate(), keyfile)

    loaded, source = load_key(key.to_printable(), keyfile)

    assert loaded == key
    assert source.from_environment
    assert str(source) == 'CI_SECRET'


def test_load_key_explicit_value_without_keyfile(tmp_path, key):
    loaded, _ = load_key(f' {key.to_printable()}\n', tmp_path / 'missing.key')
    assert loaded == key


def test_load_key_blank_explicit_value_uses_keyfile(tmp_path, key):
    keyfile = tmp_path / 'safe.key'
    save_key(key, keyfile)
    assert load_key('  ', keyfile) == (key, KeySource.file(keyfile))


def test_load_key_empty_keyfile(tmp_path):
    keyfile = tmp_path / 'safe.key'
    keyfile.write_text(' \n')
    with pytest.raises(KeyfileEmpty):
        load_key(None, keyfile)


def test_load_key_missing_keyfile(tmp_path):
    with pytest.raises(KeyfileUnreadable):
        load_key(None, tmp_path / 'missing.key')


def test_load_key_invalid_keyfile(tmp_path):
    keyfile = tmp_path / 'safe.key'
    keyfile.write_text('not a key!')
    with pytest.raises(EncodingError):
        load_key(None, keyfile)


def test_save_key(tmp_path, key):
    keyfile = tmp_path / 'safe.key'
    save_key(key, keyfile)
    assert keyfile.read_text() == f'{key.to_printable()}\n'
