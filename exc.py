class ApplicationError(Exception):
    pass


class ProviderError(ApplicationError):
    pass


class NamespaceError(ProviderError):
    pass
