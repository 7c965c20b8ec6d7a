"""Custom errors for the tranche protocol model"""

class ProtocolError(Exception):
    """Base error class for protocol errors"""
    pass

class ValidationError(ProtocolError):
    """Error for zero amounts, empty identifiers and out-of-range inputs"""
    pass

class AuthorizationError(ProtocolError):
    """Error for a caller that is not the operator, peer ledger or depositor"""
    pass

class StateError(ProtocolError):
    """Error for an operation that the current state does not permit"""
    pass

class TimingError(ProtocolError):
    """Error for an operation attempted outside its time window"""
    pass

class ArithmeticError(ProtocolError):
    """Error for arithmetic overflow/underflow"""
    pass

class OutOfRangeError(ValidationError):
    """Error for a percentage or deviation outside its allowed band"""
    pass

class DepositCapExceededError(ValidationError):
    """Error for a Senior deposit above reserve value x DEPOSIT_CAP_MULTIPLIER"""
    pass

class SchemaVersionError(ValidationError):
    """Error for a persisted snapshot with an unknown schema version"""
    pass

class DivideByZeroError(ArithmeticError):
    """Error for division by a zero supply or index"""
    pass

class TooSoonError(TimingError):
    """Error for a rebase before the minimum interval has elapsed"""
    pass

class DepositExpiredError(TimingError):
    """Error for approving a pending deposit after its expiry"""
    pass

class DepositNotPendingError(StateError):
    """Error for a transition out of a terminal deposit state"""
    pass

class DepositNotExpiredError(StateError):
    """Error for claiming a deposit that has not expired yet"""
    pass

class SinkNotConfiguredError(StateError):
    """Error for LP deposits before a liquidity sink is configured"""
    pass

class PeerNotConfiguredError(StateError):
    """Error for waterfall transfers without Junior/Reserve peers"""
    pass

class ReentrancyError(StateError):
    """Error for re-entering an operation that is still in progress"""
    pass
