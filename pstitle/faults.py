class PipelineFault(RuntimeError):
    pass


class EventDeliveryError(PipelineFault):
    pass


class InterruptInstallError(PipelineFault):
    pass
