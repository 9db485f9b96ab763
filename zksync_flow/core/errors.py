class ZkSyncFlowError(Exception):
    pass


class InvalidAmountFormat(ZkSyncFlowError, ValueError):
    """Numeric string that can't be read as an amount in the requested scale."""


class InvalidQuantity(ZkSyncFlowError, ValueError):
    """Quantity or scale outside of its domain, e.g. a negative gas price."""


class InvalidAddress(ZkSyncFlowError, ValueError):
    def __init__(self, address, label: str = "address"):
        super(InvalidAddress, self).__init__(f"Invalid {label}: {address!r}")
        self.address = address


class MissingCredential(ZkSyncFlowError):
    def __init__(self, action: str):
        super(MissingCredential, self).__init__(
            f"Private key is required to {action}"
        )


class MissingParameter(ZkSyncFlowError, KeyError):
    def __init__(self, name: str):
        super(MissingParameter, self).__init__(name)
        self.name = name

    def __str__(self):
        return f"Missing required parameter '{self.name}'"


class UnknownOperation(ZkSyncFlowError):
    def __init__(self, resource: str, operation: str):
        super(UnknownOperation, self).__init__(
            f"Operation '{operation}' is not supported for resource '{resource}'"
        )
        self.resource = resource
        self.operation = operation


class InvalidEventSignature(ZkSyncFlowError, ValueError):
    pass


class DecodeFailure(ZkSyncFlowError):
    pass
