from .metrics import (
    TransitionPoint,
    effective_reproduction_number,
    transition_point,
    loss_trend,
    is_non_increasing,
)
from .sensitivity import loss_and_gradients, max_abs, rate_gradients
from .results import FitResult, save_fit_result, load_fitted_model, load_summary
from .trainer import Trainer, make_step
from .batch import fit_regions
