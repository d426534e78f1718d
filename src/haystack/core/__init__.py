"""Document rendering pipeline shared by build and serve modes."""
