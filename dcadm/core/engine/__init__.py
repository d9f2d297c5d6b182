"""Engine — queue, pipeline, planner, history and the run loop."""
