class BaseError(Exception):
    pass
