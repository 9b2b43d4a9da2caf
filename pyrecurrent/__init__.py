__version__ = '0.1.0'

# Import the submodules first that have no dependencies
from .validation import ValidationError, ConfigurationError, JoinError, DegenerateIntervalWarning
from .logger import setup_logging

# Import the classifier next, config resolves the species partition with it
from .classifier import classify_species, species_partition, classify
from .config import survey_config, resolve_config

# Import the survey state machine and the assembler which depends on it
from .survey import survey_machine, survey_site
from .assembler import assemble, check_covariates, join_covariates

# Finally, import the recurrent_event class, which depends on all of the above
from .formatter import recurrent_event, recurrent_event_table
