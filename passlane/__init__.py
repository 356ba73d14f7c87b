"""
Passlane Password Manager

A command line password manager. Credentials are kept either in an encrypted
local file set under ~/.passlane or in the Passlane Online Vault, and are
always guarded by a single master password that is never stored in
recoverable form.
"""

__version__ = "1.4.0"
