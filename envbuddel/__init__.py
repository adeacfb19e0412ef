"""
Envbuddel keeps a CI/CD pipeline's environment secrets in git as an encrypted vault.

The environment is either a single file (default '.env') or a directory. It is
packed, encrypted with AES-256-GCM under a 32 byte key and written as a
Base64 text vault (default 'env.enc') that can be committed safely.

The key is read from the CI_SECRET environment variable, or from a keyfile
(default 'safe.key') when CI_SECRET is not set.

Set up a repository, creating a key, an empty environment and a vault:

\b
    $ envbuddel init
    $ envbuddel init --folder

Encrypt the environment into the vault after editing it:

\b
    $ vi .env
    $ envbuddel encrypt

Decrypt the vault in a pipeline:

\b
    $ export CI_SECRET="..."
    $ envbuddel decrypt
"""

__version__ = '0.3.0'
