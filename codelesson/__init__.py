"""CodeLesson - Interactive Python lessons with graded exercises and saved progress."""
