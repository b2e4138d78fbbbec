"""HTTP front end for the crypto playground."""
