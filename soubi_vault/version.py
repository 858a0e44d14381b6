"""SOUBI Vault Meta information.
   SOUBI Vault keeps the local inventory database encrypted at rest.
"""
__title__ = 'soubi_vault'
__description__ = (
   'SOUBI Vault keeps the local inventory database encrypted '
   'at rest under a user password.'
)
__version__ = '0.1.0'
__license__ = 'Apache-2.0'
