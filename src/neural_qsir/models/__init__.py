from . import vector_fields
from . import neural_nets

from .qsir_neural_ode import QSIRNeuralODE, solve_trajectory
