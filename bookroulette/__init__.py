"""Book Roulette: a reading list with a randomized picker."""
