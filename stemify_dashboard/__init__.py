"""
STEMify — Admin Reporting Dashboard

Analytics backend joining the students project and the teachers +
monthly enrollment project into dashboard-ready revenue and enrollment
figures.

To compute the headline figures:
    Build the tables with loaders.build_dim_teacher / build_fact_enrollment
    (or fetch them with sources.load_snapshot()) and call
    revenue.aggregate(teachers, enrollments, store=PriceOverrideStore()).

To connect to Streamlit:
    Call dashboard.get_home_overview(...) and the other get_* functions;
    they return plain dicts and DataFrames ready for cards, Plotly charts
    and tables.

To change pricing:
    A teacher's own price_per_student always wins. Teachers without one
    use the local override store, then config.DEFAULT_PRICE.
"""
