"""Flask front end for the HSB news feeds."""
