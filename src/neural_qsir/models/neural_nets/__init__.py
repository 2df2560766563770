from .quarantine_net import QuarantineNet
