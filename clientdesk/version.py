"""ClientDesk Meta information.
   ClientDesk vault encrypts client credentials before they reach the row store.
"""
__title__ = 'clientdesk'
__description__ = (
   'ClientDesk vault encrypts client credentials '
   'before they reach the row store.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2026 ClientDesk'
__author__ = 'ClientDesk'
__author_email__ = 'dev@clientdesk.app'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/clientdesk/clientdesk'
