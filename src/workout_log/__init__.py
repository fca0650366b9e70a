from .errors import DecodeFailure, FileDeleteFailure, WorkoutStoreError, WriteFailure
from .models import LoggedExercise, LoggedSet, LoggedWorkout
from .store import WorkoutLogStore
