"""Firefly Importer Meta information.
   Firefly Importer keeps bank credentials encrypted inside its configuration.
"""
__title__ = 'firefly_importer'
__description__ = (
   'Field-level encryption and layered resolution for the '
   'bank importer configuration.'
)
__version__ = '0.3.0'
__license__ = 'Apache-2.0'
