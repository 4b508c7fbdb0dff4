class InferenceError(RuntimeError):
    """The vision/language inference service failed or was unreachable."""


class OllamaError(InferenceError):
    pass


class HFLLMError(InferenceError):
    pass


class NotificationError(RuntimeError):
    """The local notification collaborator refused or failed a schedule call."""


class StorageError(RuntimeError):
    pass
