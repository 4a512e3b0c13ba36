import os
import typing
import logging
from argparse import ArgumentParser
from contextlib import contextmanager
from appdirs import user_config_dir
import yaml

log = logging.getLogger(__name__)


NOT_SET = type('NOT_SET', (object,), {})  # pylint: disable=invalid-name
T = typing.TypeVar('T')


class Setting(typing.Generic[T]):
    """
    Descriptor for one named setting. Reads walk the layers of the owning
    config in `search_order`, writes go to every layer in `modify_order`.
    """

    def __init__(self, doc: str, default: typing.Optional[T] = None,
                 previous_names: typing.Optional[typing.List[str]] = None,
                 metavar: typing.Optional[str] = None):
        self.doc = doc
        self.default = default
        self.previous_names = previous_names or []
        self.metavar = metavar

    def __set_name__(self, owner, name):
        self.name = name  # pylint: disable=attribute-defined-outside-init

    @property
    def cli_name(self):
        return '--' + self.name.replace('_', '-')

    @property
    def env_name(self):
        return SettingsLayer.ENV_PREFIX + self.name.upper()

    def matches(self, key: str) -> bool:
        return key == self.name or key in self.previous_names

    def __get__(self, obj: typing.Optional['BaseConfig'], owner) -> T:
        if obj is None:
            return self
        for layer in obj.search_order:
            if self.name in layer:
                return layer[self.name]
        return self.default

    def __set__(self, obj: 'BaseConfig', val: typing.Union[T, NOT_SET]):
        layers = obj.modify_order
        if val == NOT_SET:
            for layer in layers:
                if self.name in layer:
                    del layer[self.name]
            return
        self.validate(val)
        for layer in layers:
            layer[self.name] = val

    def validate(self, value):
        raise NotImplementedError()

    def deserialize(self, value):  # pylint: disable=no-self-use
        return value

    def serialize(self, value):  # pylint: disable=no-self-use
        return value

    def argparse_options(self) -> dict:
        return {'help': self.doc, 'metavar': self.metavar}

    def contribute_to_argparse(self, parser: ArgumentParser):
        parser.add_argument(self.cli_name, default=NOT_SET, **self.argparse_options())


class String(Setting[str]):
    def validate(self, value):
        assert isinstance(value, str), \
            f"Setting '{self.name}' must be a string."


class Integer(Setting[int]):

    def __init__(self, doc: str, default: typing.Optional[int] = None, *args,
                 minimum: typing.Optional[int] = None, **kwargs):
        super().__init__(doc, default, *args, **kwargs)
        self.minimum = minimum

    def validate(self, value):
        assert isinstance(value, int) and not isinstance(value, bool), \
            f"Setting '{self.name}' must be an integer."
        if self.minimum is not None and value < self.minimum:
            raise ValueError(f"Setting '{self.name}' must be at least {self.minimum}.")

    def deserialize(self, value):
        value = int(value)
        self.validate(value)
        return value


class Path(String):
    """ A file system path, `~` and environment variables are expanded on read. """

    def __init__(self, doc: str, *args, default: str = '', **kwargs):
        super().__init__(doc, default, *args, **kwargs)

    def __get__(self, obj, owner) -> str:
        value = super().__get__(obj, owner)
        if isinstance(value, str):
            return os.path.expanduser(os.path.expandvars(value))
        return value


class StringChoice(String):

    def __init__(self, doc: str, valid_values: typing.List[str], default: str, *args, **kwargs):
        if not valid_values:
            raise ValueError("No valid values provided")
        if default not in valid_values:
            raise ValueError(f"Default value must be one of: {', '.join(valid_values)}")
        super().__init__(doc, default, *args, **kwargs)
        self.valid_values = valid_values

    def validate(self, value):
        super().validate(value)
        if value not in self.valid_values:
            raise ValueError(f"Setting '{self.name}' value must be one of: {', '.join(self.valid_values)}")

    def argparse_options(self) -> dict:
        return {'help': self.doc, 'choices': self.valid_values}


class SettingsLayer:
    """ Read-only mapping of setting name to value loaded from one origin. """

    ENV_PREFIX = 'BUNDLESTREAM_'

    def __init__(self, config: 'BaseConfig'):
        self.configuration = config
        self.data = {}

    def _store(self, setting: Setting, value):
        self.data[setting.name] = setting.deserialize(value)

    def __contains__(self, item: str):
        return item in self.data

    def __getitem__(self, item: str):
        return self.data[item]


class EnvironmentLayer(SettingsLayer):

    def __init__(self, config: 'BaseConfig', environ: typing.Mapping[str, str]):
        super().__init__(config)
        for setting in config.get_settings():
            if setting.env_name in environ:
                self._store(setting, environ[setting.env_name])


class ArgumentLayer(SettingsLayer):

    def __init__(self, config: 'BaseConfig', args):
        super().__init__(config)
        for setting in config.get_settings():
            value = getattr(args, setting.name, NOT_SET)
            if value != NOT_SET:
                self._store(setting, value)


class FileLayer(SettingsLayer):
    """ Settings persisted in a YAML file, the only layer that can be saved back. """

    def __init__(self, config: 'BaseConfig', path: str):
        super().__init__(config)
        self.path = path
        if self.exists:
            self.load()

    @property
    def exists(self):
        return bool(self.path) and os.path.exists(self.path)

    def load(self):
        with open(self.path, 'r') as config_file:
            serialized = yaml.safe_load(config_file) or {}
        settings = list(self.configuration.get_settings())
        for key, value in serialized.items():
            setting = next((s for s in settings if s.matches(key)), None)
            if setting is None:
                log.warning("ignoring unknown setting '%s' in %s", key, self.path)
                continue
            self._store(setting, value)

    def save(self):
        cls = type(self.configuration)
        serialized = {key: getattr(cls, key).serialize(value) for key, value in self.data.items()}
        with open(self.path, 'w') as config_file:
            yaml.safe_dump(serialized, config_file, default_flow_style=False)

    def __setitem__(self, key, value):
        self.data[key] = value

    def __delitem__(self, key):
        del self.data[key]


TBC = typing.TypeVar('TBC', bound='BaseConfig')


class BaseConfig:

    config = Path("Path to configuration file.", metavar='FILE')

    def __init__(self, **kwargs):
        self.runtime = {}      # set in process
        self.arguments = {}    # command line
        self.environment = {}  # BUNDLESTREAM_* variables
        self.persisted = {}    # YAML file
        self._updating_config = False
        for key, value in kwargs.items():
            setattr(self, key, value)

    @contextmanager
    def update_config(self):
        self._updating_config = True
        try:
            yield self
        finally:
            self._updating_config = False
        if isinstance(self.persisted, FileLayer):
            self.persisted.save()

    @property
    def modify_order(self):
        if self._updating_config:
            return [self.runtime, self.persisted]
        return [self.runtime]

    @property
    def search_order(self):
        return [self.runtime, self.arguments, self.environment, self.persisted]

    @classmethod
    def get_settings(cls) -> typing.Iterator[Setting]:
        for attr in dir(cls):
            setting = getattr(cls, attr)
            if isinstance(setting, Setting):
                yield setting

    @property
    def settings_dict(self):
        return {setting.name: getattr(self, setting.name) for setting in self.get_settings()}

    @classmethod
    def create_from_arguments(cls: typing.Type[TBC], args) -> TBC:
        conf = cls()
        conf.set_arguments(args)
        conf.set_environment()
        conf.set_persisted()
        return conf

    @classmethod
    def contribute_to_argparse(cls, parser: ArgumentParser):
        for setting in cls.get_settings():
            setting.contribute_to_argparse(parser)

    def set_arguments(self, args):
        self.arguments = ArgumentLayer(self, args)

    def set_environment(self, environ=None):
        self.environment = EnvironmentLayer(self, os.environ if environ is None else environ)

    def set_persisted(self, config_file_path=None):
        path = self.config if config_file_path is None else config_file_path
        if not path:
            return
        ext = os.path.splitext(path)[1]
        assert ext in ('.yml', '.yaml'), \
            f"File extension '{ext}' is not supported, configuration file must be in YAML (.yaml)."
        self.persisted = FileLayer(self, path)


class Config(BaseConfig):

    chunk_size = Integer(
        "Size in bytes of the blocks read from a bundle file and handed down the pipeline.", 64 * 1024,
        minimum=1, metavar='BYTES'
    )
    zip_compression = StringChoice(
        "Compression used for members of ZIP based bundles.", ['deflated', 'stored'], 'deflated'
    )
    container_codec = String(
        "Name of the registered codec used to read and write binary (.agb) bundle containers.", 'default'
    )
    log_level = StringChoice(
        "Logging level of the command line tools.", ['debug', 'info', 'warning', 'error'], 'info'
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        type(self).config.default = os.path.join(user_config_dir('bundlestream'), 'settings.yml')

    @property
    def logging_level(self) -> int:
        return logging.getLevelName(self.log_level.upper())
