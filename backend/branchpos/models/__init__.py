from .tenancy import Branch
from .customers import Customer
from .inventory import WarehouseMachine, PosMachine
from .sales import MachineSale, Installment, Payment
from .audit import MachineMovementLog, SystemLog

__all__ = [
    'Branch',
    'Customer',
    'WarehouseMachine', 'PosMachine',
    'MachineSale', 'Installment', 'Payment',
    'MachineMovementLog', 'SystemLog',
]
