from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path

APP_ID = "io.workoutlog.WorkoutLog"
DEFAULT_APP_DIR = Path("~/.local/share") / APP_ID
DEFAULT_FILE_NAME = "logged_workouts_v1.json"


@dataclass
class Settings:
    app_dir: Path
    data_dir: Path
    file_name: str = DEFAULT_FILE_NAME
    weight_unit: str = ""

    @property
    def config_file(self) -> Path:
        return self.app_dir / "config.ini"

    @property
    def store_path(self) -> Path:
        return self.data_dir / self.file_name

    @classmethod
    def load(cls, app_dir: Path | None = None) -> "Settings":
        """Read config.ini from the app directory, falling back to defaults."""
        app_dir = Path(app_dir or DEFAULT_APP_DIR).expanduser()
        app_dir.mkdir(parents=True, exist_ok=True)

        settings = cls(app_dir=app_dir, data_dir=app_dir)
        if not settings.config_file.exists():
            return settings

        cfg = ConfigParser()
        cfg.read(settings.config_file)

        data_dir = cfg.get("storage", "data_dir", fallback="")
        if data_dir:
            settings.data_dir = Path(data_dir).expanduser()
        settings.file_name = cfg.get("storage", "file_name", fallback=DEFAULT_FILE_NAME) or DEFAULT_FILE_NAME
        settings.weight_unit = cfg.get("export", "weight_unit", fallback="")
        return settings

    def save(self) -> None:
        cfg = ConfigParser()
        # keep sections we don't own
        if self.config_file.exists():
            cfg.read(self.config_file)

        for section in ("storage", "export"):
            if not cfg.has_section(section):
                cfg.add_section(section)

        # data_dir is left empty when it's just the app directory
        cfg.set("storage", "data_dir", "" if self.data_dir == self.app_dir else str(self.data_dir))
        cfg.set("storage", "file_name", self.file_name)
        cfg.set("export", "weight_unit", self.weight_unit)

        self.app_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w") as f:
            cfg.write(f)
