"""Study tracker with exam-aware study path planning."""
