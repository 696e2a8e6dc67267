DEBUG = False
DEBUG_APP_EXCEPTION = False

EXCHANGE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
EXCHANGE_DAY_FORMAT = "%Y-%m-%d"
