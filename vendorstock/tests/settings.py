"""
Django settings for the vendorstock test suite.
"""

SECRET_KEY = 'vendorstock-tests'

DEBUG = False
USE_TZ = True
TIME_ZONE = 'UTC'

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'django.contrib.sessions',
    'django.contrib.messages',
    'vendorstock',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

VENDORSTOCK = {
    'STORAGE_BACKEND': 'vendorstock.adapters.orm.OrmStockStorage',
    'LOCK_TIMEOUT_MS': 1000,
}
