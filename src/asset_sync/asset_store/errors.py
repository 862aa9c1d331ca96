class AssetStoreError(Exception):
    pass


class InvalidPatternError(AssetStoreError):
    pass


class AssetValidationError(AssetStoreError):
    pass


class MissingPlaceholderError(AssetStoreError):
    def __init__(self, key: str, uid: str | None):
        self.key = key
        self.uid = uid
        super().__init__(f"The key '{key}' did not exist on asset {uid or '<no uid>'}")


class UnsafePathError(AssetStoreError):
    def __init__(self, key: str, value: str, uid: str | None):
        self.key = key
        self.value = value
        self.uid = uid
        super().__init__(f"Value {value!r} of key '{key}' on asset {uid or '<no uid>'} is not a valid path segment")


class RemoteFetchFailed(AssetStoreError):
    def __init__(self, uid: str | None, url: str, status: int | None = None, reason: str | None = None):
        self.uid = uid
        self.url = url
        self.status = status
        detail = f"status {status}" if status is not None else (reason or "transport error")
        super().__init__(f"Failed to download asset {uid} from {url}: {detail}")


class FilesystemOperationFailed(AssetStoreError):
    def __init__(self, operation: str, path: str, error: OSError):
        self.operation = operation
        self.path = path
        super().__init__(f"{operation} failed for {path}: {error}")


class TransportError(AssetStoreError):
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Request to {url} failed: {reason}")
