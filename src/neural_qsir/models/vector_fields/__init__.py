from .const_quarantine import ConstantQuarantine
from .qsir_vector_field import QSIRVectorField
