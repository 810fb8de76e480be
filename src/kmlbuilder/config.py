import configparser
import dataclasses
import os.path

from kmlbuilder import constants
from kmlbuilder.models import MergeMode


@dataclasses.dataclass
class Config:
    mode: str
    precision: int
    sample_budget: int
    area_method: str
    backfill_distance_km: float
    backfill_tolerance: float
    search_url: str
    user_agent: str
    search_timeout: int

    @property
    def merge_mode(self) -> MergeMode:
        return MergeMode.parse(self.mode)

    def show(self):
        print()
        print('Using configuration:')
        for k, v in self.__dict__.items():
            print(f'  + {k}: {v}')


def default_configuration():
    """
    Returns a Config populated entirely from the defaults in 'constants'.
    """
    return Config(
        constants.DEFAULT_MODE,
        constants.DEFAULT_PRECISION,
        constants.DEFAULT_SAMPLE_BUDGET,
        constants.DEFAULT_AREA_METHOD,
        constants.DEFAULT_BACKFILL_DISTANCE_KM,
        constants.DEFAULT_BACKFILL_TOLERANCE,
        constants.DEFAULT_SEARCH_URL,
        constants.DEFAULT_USER_AGENT,
        constants.DEFAULT_SEARCH_TIMEOUT,
    )


def config_parser_factory(configuration_file):
    """
    Returns a ConfigParser by reading the specified file.
    """
    if configuration_file is None or not os.path.exists(configuration_file):
        raise ValueError(f'Unable to find configuration file {configuration_file}')
    cfg_parser = configparser.ConfigParser(interpolation=configparser.ExtendedInterpolation())
    cfg_parser.read(configuration_file)
    return cfg_parser


def _get_configuration_value(section, name, value_type, config_parser, overrides):
    """
    Returns a value from the provided config parser; any value for the key that
    is provided in the 'overrides' dictionary will take precedence.
    """
    if overrides.get(name) is not None:
        return value_type(overrides.get(name))
    if value_type is int:
        return config_parser.getint(section, name)
    elif value_type is float:
        return config_parser.getfloat(section, name)
    else:
        return config_parser.get(section, name)


def configuration(config_parser, overrides):
    """
    Returns a valid Config object populated from the provided config parser,
    with values overridden with anything provided in 'overrides'. Missing
    sections and keys fall back to the defaults in 'constants'.
    """
    config_parser['DEFAULT'] = {
        'mode': constants.DEFAULT_MODE,
        'precision': constants.DEFAULT_PRECISION,
        'sample_budget': constants.DEFAULT_SAMPLE_BUDGET,
        'area_method': constants.DEFAULT_AREA_METHOD,
        'backfill_distance_km': constants.DEFAULT_BACKFILL_DISTANCE_KM,
        'backfill_tolerance': constants.DEFAULT_BACKFILL_TOLERANCE,
        'search_url': constants.DEFAULT_SEARCH_URL,
        'user_agent': constants.DEFAULT_USER_AGENT,
        'search_timeout': constants.DEFAULT_SEARCH_TIMEOUT,
    }
    for section in (constants.PROCESSING_SECTION_NAME, constants.BRIDGING_SECTION_NAME,
                    constants.BACKFILL_SECTION_NAME, constants.SEARCH_SECTION_NAME):
        if not config_parser.has_section(section):
            config_parser.add_section(section)

    try:
        return Config(
            _get_configuration_value(constants.PROCESSING_SECTION_NAME, 'mode', str, config_parser, overrides),
            _get_configuration_value(constants.PROCESSING_SECTION_NAME, 'precision', int, config_parser, overrides),
            _get_configuration_value(constants.BRIDGING_SECTION_NAME, 'sample_budget', int, config_parser, overrides),
            _get_configuration_value(constants.PROCESSING_SECTION_NAME, 'area_method', str, config_parser, overrides),
            _get_configuration_value(constants.BACKFILL_SECTION_NAME, 'backfill_distance_km', float, config_parser, overrides),
            _get_configuration_value(constants.BACKFILL_SECTION_NAME, 'backfill_tolerance', float, config_parser, overrides),
            _get_configuration_value(constants.SEARCH_SECTION_NAME, 'search_url', str, config_parser, overrides),
            _get_configuration_value(constants.SEARCH_SECTION_NAME, 'user_agent', str, config_parser, overrides),
            _get_configuration_value(constants.SEARCH_SECTION_NAME, 'search_timeout', int, config_parser, overrides),
        )
    except ValueError as e:
        raise ValueError(f'Unable to read the configuration: {e}') from e


def validate(configuration):
    """
    Validates each value in the configuration.
    """
    validations = [
        ['mode', lambda mode: mode in (constants.ACCURATE, constants.APPROXIMATE),
         f'The mode must be {constants.ACCURATE} or {constants.APPROXIMATE}.'],
        ['precision', lambda digits: 0 <= digits <= 15, 'The precision must be between 0 and 15.'],
        ['sample_budget', lambda budget: budget > 0, 'The sample_budget must be positive.'],
        ['area_method', lambda method: method in (constants.GEODESIC, constants.PLANAR),
         f'The area_method must be {constants.GEODESIC} or {constants.PLANAR}.'],
        ['backfill_distance_km', lambda km: km > 0, 'The backfill_distance_km must be positive.'],
        ['backfill_tolerance', lambda tol: tol >= 0, 'The backfill_tolerance must not be negative.'],
        ['search_timeout', lambda seconds: seconds > 0, 'The search_timeout must be positive.'],
    ]
    errors = [msg for name, fn, msg in validations if not fn(getattr(configuration, name))]
    return len(errors) == 0, errors
