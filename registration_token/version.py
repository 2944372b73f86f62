"""Registration Token Meta information.
   Registration Token packs server SSH credentials into a single
   copy-pasteable encrypted string.
"""
__title__ = 'registration_token'
__description__ = (
   'Registration Token packs server SSH credentials into a single '
   'copy-pasteable encrypted string.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2024 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/registration-token'
