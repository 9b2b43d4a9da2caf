"""
Tests for record assembly and the covariate join
"""

import numpy as np
import pandas as pd
import pytest
from pyrecurrent import assembler, survey
from pyrecurrent.validation import JoinError, ValidationError


def site_records():
    first = survey.survey_site('S1', [0, 2, 5, 8], ['primary', 'secondary', 'primary', 'tertiary'], 30, 100)
    second = survey.survey_site('S2', [1], ['primary'], 30, 20)
    return [first, second]


@pytest.mark.unit
def test_survey_ids_are_unique_across_sites():
    table = assembler.assemble(site_records())
    assert list(table.columns) == assembler.OUTPUT_COLUMNS
    assert table.survey_id.tolist() == [1, 1, 2, 3]
    assert table.groupby('survey_id').site_id.nunique().max() == 1
    assert table[table.site_id == 'S2'].survey_id.unique().tolist() == [3]


@pytest.mark.unit
def test_times_are_relative_to_survey_start():
    table = assembler.assemble(site_records())
    s1_second = table[table.survey_id == 2]
    assert s1_second.time_0.tolist() == [5]
    assert s1_second.t_start.tolist() == [0]
    assert s1_second.t_stop.tolist() == [3]

    s2 = table[table.survey_id == 3]
    assert s2.t_stop.tolist() == [19]
    assert s2.closure.tolist() == [survey.STUDY_END]


@pytest.mark.unit
def test_datetime_times_in_fractional_days():
    start = pd.Timestamp('2023-06-01 00:00:00')
    records = survey.survey_site('A',
                                 [start, start + pd.Timedelta(hours = 36)],
                                 ['primary', 'secondary'],
                                 pd.Timedelta(days = 3),
                                 start + pd.Timedelta(days = 10))
    table = assembler.assemble([records], pd.Timedelta('1D'))
    np.testing.assert_allclose(table.t_start.values, [0.0, 1.5])
    np.testing.assert_allclose(table.t_stop.values, [1.5, 3.0])
    assert table.time_1.iloc[-1] == start + pd.Timedelta(days = 3)


@pytest.mark.unit
def test_empty_assembly_keeps_columns():
    table = assembler.assemble([[], []])
    assert table.empty
    assert list(table.columns) == assembler.OUTPUT_COLUMNS


@pytest.mark.unit
class TestCovariates:
    """Test covariate checks and the join"""

    def test_exact_duplicates_collapse(self):
        covs = pd.DataFrame({'Site': ['S1', 'S1', 'S2'], 'habitat': ['forest', 'forest', 'meadow']})
        checked = assembler.check_covariates(covs, 'Site')
        assert checked.site_id.tolist() == ['S1', 'S2']

    def test_conflicting_rows_raise(self):
        covs = pd.DataFrame({'Site': ['S1', 'S1'], 'habitat': ['forest', 'meadow']})
        with pytest.raises(JoinError, match = 'S1'):
            assembler.check_covariates(covs, 'Site')

    def test_colliding_columns_raise(self):
        covs = pd.DataFrame({'Site': ['S1'], 'event': [3]})
        with pytest.raises(JoinError):
            assembler.check_covariates(covs, 'Site')

    def test_missing_site_column_raises(self):
        covs = pd.DataFrame({'Camera': ['S1'], 'habitat': ['forest']})
        with pytest.raises(ValidationError):
            assembler.check_covariates(covs, 'Site')

    def test_left_join_on_every_record(self):
        table = assembler.assemble(site_records())
        covs = assembler.check_covariates(pd.DataFrame({'Site': ['S1', 'S9'],
                                                        'habitat': ['forest', 'meadow']}),
                                          'Site')
        joined = assembler.join_covariates(table, covs)
        assert len(joined) == len(table)
        assert (joined[joined.site_id == 'S1'].habitat == 'forest').all()
        assert joined[joined.site_id == 'S2'].habitat.isna().all()

    def test_mismatched_site_types_raise(self):
        records = survey.survey_site(7, [0, 3], ['primary', 'tertiary'], 30, 100)
        table = assembler.assemble([records])
        covs = assembler.check_covariates(pd.DataFrame({'Site': ['7'], 'habitat': ['forest']}), 'Site')
        with pytest.raises(JoinError, match = 'type'):
            assembler.join_covariates(table, covs)

    def test_integer_sites_join(self):
        records = survey.survey_site(7, [0, 3], ['primary', 'tertiary'], 30, 100)
        table = assembler.assemble([records])
        covs = assembler.check_covariates(pd.DataFrame({'Site': [7], 'habitat': ['forest']}), 'Site')
        joined = assembler.join_covariates(table, covs)
        assert joined.habitat.tolist() == ['forest']

    def test_join_onto_empty_table(self):
        table = assembler.assemble([])
        covs = assembler.check_covariates(pd.DataFrame({'Site': ['S1'], 'habitat': ['forest']}), 'Site')
        joined = assembler.join_covariates(table, covs)
        assert joined.empty
        assert list(joined.columns) == assembler.OUTPUT_COLUMNS + ['habitat']
