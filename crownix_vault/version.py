"""Crownix Vault Meta information.
   Crownix Vault keeps a user's credentials in a single encrypted container
   and exposes them only while a session is unlocked.
"""
__title__ = 'crownix_vault'
__description__ = (
   'Crownix Vault: encrypted password container, session key lifecycle '
   'and in-memory entity index.'
)
__version__ = '1.0.0'
__copyright__ = 'Copyright (c) 2026 Crownix Vault Developers'
__author__ = 'Crownix Vault Developers'
__author_email__ = 'dev@crownix.app'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/crownix/crownix-vault'
