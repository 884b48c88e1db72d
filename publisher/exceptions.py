class PipelineError(Exception):
    """Base class for every fault raised by a pipeline stage."""


class TransientFault(PipelineError):
    """Network, timeout or upstream hiccup. The worker retries the same stage."""


class MalformedResponse(TransientFault):
    """An external service answered 2xx with a body we can't use."""


class EncodeError(TransientFault):
    """ffmpeg exited non-zero or could not be started."""


class ResourceFault(TransientFault):
    """Filesystem or scratch workspace error."""


class ContractError(PipelineError):
    """A stage received or produced a payload that breaks the chaining contract."""


class CredentialsError(PipelineError):
    """Missing or unusable hosting credentials."""
