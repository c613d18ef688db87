from django.urls import path
from . import views

urlpatterns = [
    path('services/', views.list_services, name='list_services'),
    path('services/popular/', views.popular_services, name='popular_services'),
    path('services/<int:service_id>/', views.get_service, name='get_service'),
    path('services/<int:service_id>/employees/', views.list_service_employees, name='list_service_employees'),
    path('categories/', views.list_categories, name='list_categories'),
    path('deals/', views.list_deals, name='list_deals'),
]
