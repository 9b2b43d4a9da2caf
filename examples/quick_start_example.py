"""
pyrecurrent Quick Start Example
===============================

This script demonstrates a complete workflow from a camera trap detection
export to a recurrent event table ready for a piece-wise exponential model.

Before running:
1. Export classified detections with Site, DateTime and Species columns
2. Optionally prepare a site covariate table with one row per Site
3. Update the project_dir variable below
"""

import os
import logging
import sys
import pandas as pd
import pyrecurrent
from pyrecurrent import setup_logging, ValidationError, JoinError

# =============================================================================
# CONFIGURATION - Update these paths for your project
# =============================================================================

project_dir = r"C:\path\to\your\project"  # UPDATE THIS
detection_file = os.path.join(project_dir, 'detections.csv')
covariate_file = os.path.join(project_dir, 'sites.csv')
output_file = os.path.join(project_dir, 'Output', 'recurrent_events.csv')

# Species roles
primary = {'Red Fox'}                       # opens a survey
secondary = {'Badger', 'Pine Marten'}       # recurrent events within a survey
tertiary = None                             # None: every other species censors
ignored = {'Blank', 'Unknown', 'Human'}     # dropped before the scan

survey_duration = 30                        # days
survey_end_date = '2023-10-31'

# =============================================================================
# STEP 1: Load and format
# =============================================================================

os.makedirs(os.path.dirname(output_file), exist_ok=True)
logger = setup_logging(level=logging.INFO,
                       log_file=os.path.join(project_dir, 'Output', 'pyrecurrent.log'))

detections = pd.read_csv(detection_file, parse_dates=['DateTime'])
covariates = pd.read_csv(covariate_file) if os.path.exists(covariate_file) else None
logger.info(f"Loaded {len(detections)} detections")

try:
    ret = pyrecurrent.recurrent_event(detections,
                                      primary=primary,
                                      secondary=secondary,
                                      survey_duration=survey_duration,
                                      tertiary=tertiary,
                                      ignored=ignored,
                                      survey_end_date=survey_end_date,
                                      covariates=covariates)
except (ValidationError, JoinError) as e:
    logger.error(f"Input could not be formatted: {e}")
    sys.exit(1)

# =============================================================================
# STEP 2: Build the recurrent event table
# =============================================================================

table = ret.data_prep(n_jobs=4, progress=True)
stats = ret.summary()

table.to_csv(output_file, index=False)
logger.info(f"✓ Wrote {len(table)} records for {stats['survey_count']} surveys to {output_file}")
