"""Terminal front end for the crypto playground."""
